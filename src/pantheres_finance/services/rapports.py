"""Rapports et exports : assemblage des jeux de données et rendu au format demandé."""

from __future__ import annotations

import datetime
import logging
from enum import Enum

from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_export
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.config.loader import AppConfig
from pantheres_finance.exporters import csv_export, excel, pdf
from pantheres_finance.exporters.tabular import (
    Tableau,
    export_filename,
    tableau_budget,
    tableau_cotisations,
    tableau_membres,
    tableau_transactions,
)
from pantheres_finance.models import ValidationMetierError
from pantheres_finance.services.budget import query_budget_with_realise
from pantheres_finance.services.dashboard import query_kpis
from pantheres_finance.services.membres import load_membre, query_membres
from pantheres_finance.services.paiements import load_paiement, query_etats_cotisations
from pantheres_finance.services.transactions import query_transactions

logger = logging.getLogger(__name__)

DATASETS = ("transactions", "membres", "cotisations", "budget")


class FormatExport(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"


MEDIA_TYPES = {
    FormatExport.CSV: "text/csv; charset=utf-8",
    FormatExport.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    FormatExport.PDF: "application/pdf",
}


def build_tableau(
    session: Session,
    config: AppConfig,
    dataset: str,
    today: datetime.date,
    *,
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
) -> Tableau:
    """Jeu de données demandé ; la période par défaut du budget est la saison."""
    if dataset == "transactions":
        return tableau_transactions(query_transactions(session, debut=debut, fin=fin))
    if dataset == "membres":
        return tableau_membres(query_membres(session))
    if dataset == "cotisations":
        return tableau_cotisations(query_etats_cotisations(session, config, today))
    if dataset == "budget":
        lignes = query_budget_with_realise(
            session,
            debut or config.saison.start_date,
            fin or config.saison.end_date,
            chevauchement=debut is None and fin is None,
        )
        return tableau_budget(lignes)
    raise ValidationMetierError(f"Jeu de données inconnu : {dataset} (attendu : {', '.join(DATASETS)})")


def render(tableau: Tableau, format_export: FormatExport, config: AppConfig, today: datetime.date) -> bytes:
    if format_export == FormatExport.CSV:
        return csv_export.export_to_bytes(tableau)
    if format_export == FormatExport.XLSX:
        return excel.export_to_bytes(tableau, config, today)
    return pdf.export_to_bytes(tableau, config, today)


def export_dataset(
    session: Session,
    ctx: AuthContext,
    config: AppConfig,
    dataset: str,
    format_export: FormatExport,
    today: datetime.date,
    *,
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
) -> tuple[str, bytes]:
    """Renvoie (nom de fichier, contenu) ; réservé aux profils habilités à exporter."""
    require_export(ctx)

    format_export = FormatExport(format_export)
    tableau = build_tableau(session, config, dataset, today, debut=debut, fin=fin)
    content = render(tableau, format_export, config, today)

    logger.info("Export %s (%s, %d lignes) par %s", dataset, format_export.value, len(tableau.lignes), ctx.email)
    return export_filename(tableau.nom, format_export.value, today), content


def build_rapport_financier(
    session: Session,
    config: AppConfig,
    today: datetime.date,
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
) -> bytes:
    debut = debut or config.saison.start_date
    fin = fin or today
    kpis, _ = query_kpis(session, config, today)
    transactions = sorted(query_transactions(session, debut=debut, fin=fin), key=lambda t: (t.date, t.id))
    return pdf.rapport_financier(config, kpis, transactions, debut, fin, today)


def rapport_financier(
    session: Session,
    ctx: AuthContext,
    config: AppConfig,
    today: datetime.date,
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
) -> tuple[str, bytes]:
    require_export(ctx)
    content = build_rapport_financier(session, config, today, debut, fin)
    logger.info("Rapport financier généré par %s", ctx.email)
    return export_filename("rapport_financier", "pdf", today), content


def recu_paiement(
    session: Session,
    ctx: AuthContext,
    config: AppConfig,
    membre_id: int,
    paiement_id: int,
    today: datetime.date,
) -> tuple[str, bytes]:
    require_export(ctx)
    membre = load_membre(session, membre_id)
    paiement = load_paiement(session, membre_id, paiement_id)
    content = pdf.recu_paiement(config, membre, paiement, today)
    return f"recu_{membre_id}_{paiement.annee}-{paiement.mois:02d}.pdf", content
