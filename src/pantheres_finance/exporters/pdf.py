"""Documents PDF : export tabulaire, rapport financier et reçu de paiement."""

from __future__ import annotations

import datetime
import io
from collections.abc import Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from pantheres_finance.config.loader import AppConfig
from pantheres_finance.db.tables import Membre, Paiement, Transaction
from pantheres_finance.exporters.tabular import (
    CURRENCY,
    NUMBER,
    Tableau,
    format_cell,
    format_date,
    format_montant,
    tableau_transactions,
)
from pantheres_finance.models import MOIS_FR, KpisFinanciers

PRIMARY = colors.HexColor("#F59E0B")
SECONDARY = colors.HexColor("#1F2937")
ALTERNATE = colors.HexColor("#FEF3C7")
SUCCESS = colors.HexColor("#10B981")
DANGER = colors.HexColor("#EF4444")


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "club": ParagraphStyle("club", parent=base["Title"], textColor=PRIMARY, fontSize=18, spaceAfter=2),
        "saison": ParagraphStyle("saison", parent=base["Normal"], textColor=SECONDARY, fontSize=9),
        "titre": ParagraphStyle("titre", parent=base["Heading2"], textColor=SECONDARY),
        "normal": base["Normal"],
        "section": ParagraphStyle("section", parent=base["Heading3"], textColor=SECONDARY),
    }


def _header(config: AppConfig, titre: str, subtitle: str | None, generated: datetime.date) -> list[Flowable]:
    styles = _styles()
    flow: list[Flowable] = [
        Paragraph(config.club_name.upper(), styles["club"]),
        Paragraph(
            f"Gestion Financière - Saison {config.saison.name} · Généré le {format_date(generated)}",
            styles["saison"],
        ),
        Spacer(1, 6 * mm),
        Paragraph(titre, styles["titre"]),
    ]
    if subtitle:
        flow.append(Paragraph(subtitle, styles["saison"]))
    flow.append(Spacer(1, 4 * mm))
    return flow


def _table_style(n_rows: int, with_total: bool) -> TableStyle:
    commands: list[tuple[object, ...]] = [
        ("BACKGROUND", (0, 0), (-1, 0), SECONDARY),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#E5E7EB")),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    for row in range(2, n_rows + 1, 2):
        commands.append(("BACKGROUND", (0, row), (-1, row), ALTERNATE))
    if with_total:
        commands.extend(
            [
                ("BACKGROUND", (0, -1), (-1, -1), SECONDARY),
                ("TEXTCOLOR", (0, -1), (-1, -1), colors.white),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ]
        )
    return TableStyle(commands)


def _data_table(tableau: Tableau) -> Table:
    data: list[list[str]] = [tableau.labels]
    for row in tableau.lignes:
        data.append([format_cell(col, row.get(col.key)) for col in tableau.colonnes])

    totaux = tableau.totaux()
    if totaux and tableau.lignes:
        total_row = []
        for index, col in enumerate(tableau.colonnes):
            if col.kind in (CURRENCY, NUMBER):
                total_row.append(format_cell(col, totaux[col.key]))
            else:
                total_row.append("TOTAL" if index == 0 else "")
        data.append(total_row)

    table = Table(data, repeatRows=1)
    table.setStyle(_table_style(len(tableau.lignes), bool(totaux and tableau.lignes)))
    return table


def _build(flow: Sequence[Flowable], pagesize: tuple[float, float], titre: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=titre,
    )
    doc.build(list(flow))
    return buffer.getvalue()


def export_to_bytes(tableau: Tableau, config: AppConfig, generated: datetime.date) -> bytes:
    """Export tabulaire (paysage au-delà de six colonnes)."""
    pagesize = landscape(A4) if len(tableau.colonnes) > 6 else A4
    flow = _header(config, tableau.titre, f"{len(tableau.lignes)} ligne(s)", generated)
    flow.append(_data_table(tableau))
    return _build(flow, pagesize, tableau.titre)


def rapport_financier(
    config: AppConfig,
    kpis: KpisFinanciers,
    transactions: Sequence[Transaction],
    debut: datetime.date,
    fin: datetime.date,
    generated: datetime.date,
) -> bytes:
    """Rapport financier : cartes de totaux puis détail des transactions de la période."""
    styles = _styles()
    flow = _header(
        config,
        "Rapport Financier",
        f"Période du {format_date(debut)} au {format_date(fin)}",
        generated,
    )

    solde_color = SUCCESS if kpis.solde_actuel >= 0 else DANGER
    cards = Table(
        [
            ["Total Recettes", "Total Dépenses", "Solde Actuel", "Recouvrement"],
            [
                f"{format_montant(kpis.total_recettes)} {config.currency}",
                f"{format_montant(kpis.total_depenses)} {config.currency}",
                f"{format_montant(kpis.solde_actuel)} {config.currency}",
                f"{kpis.taux_recouvrement:.0f}%",
            ],
        ],
        colWidths=[42 * mm] * 4,
    )
    cards.setStyle(
        TableStyle(
            [
                ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                ("FONTSIZE", (0, 0), (-1, 0), 8),
                ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 1), (-1, 1), 11),
                ("TEXTCOLOR", (0, 1), (0, 1), SUCCESS),
                ("TEXTCOLOR", (1, 1), (1, 1), DANGER),
                ("TEXTCOLOR", (2, 1), (2, 1), solde_color),
                ("BOX", (0, 0), (-1, -1), 0.5, PRIMARY),
                ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#E5E7EB")),
            ]
        )
    )
    flow.extend(
        [
            cards,
            Spacer(1, 6 * mm),
            Paragraph(f"Détail des transactions ({len(transactions)})", styles["section"]),
            _data_table(tableau_transactions(transactions)),
        ]
    )
    return _build(flow, landscape(A4), "Rapport Financier")


def recu_paiement(config: AppConfig, membre: Membre, paiement: Paiement, generated: datetime.date) -> bytes:
    """Reçu d'une mensualité de cotisation."""
    styles = _styles()
    mois = f"{MOIS_FR[paiement.mois - 1]} {paiement.annee}"
    flow = _header(config, "Reçu de Paiement", f"Cotisation {mois}", generated)

    details = Table(
        [
            ["Membre", membre.nom_prenom],
            ["Email", membre.email or ""],
            ["Mois", mois],
            ["Date de paiement", format_date(paiement.date_paiement)],
            ["Mode de paiement", paiement.mode_paiement],
            ["Montant", f"{format_montant(paiement.montant)} {config.currency}"],
            ["Référence", f"REC-{paiement.annee}{paiement.mois:02d}-{paiement.id:05d}"],
        ],
        colWidths=[50 * mm, 100 * mm],
    )
    details.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("TEXTCOLOR", (0, 0), (0, -1), SECONDARY),
                ("FONTNAME", (1, 5), (1, 5), "Helvetica-Bold"),
                ("TEXTCOLOR", (1, 5), (1, 5), SUCCESS),
                ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.HexColor("#E5E7EB")),
            ]
        )
    )
    flow.extend(
        [
            details,
            Spacer(1, 10 * mm),
            Paragraph("<b>PAIEMENT CONFIRMÉ</b>", styles["titre"]),
            Paragraph(f"Merci de votre contribution. Le Bureau - {config.club_name}", styles["normal"]),
        ]
    )
    return _build(flow, A4, "Reçu de Paiement")
