"""Gabarits des emails : objet et corps HTML."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from pantheres_finance.models import KpisFinanciers

RELANCE_COTISATION = "relance_cotisation"
CONFIRMATION_PAIEMENT = "confirmation_paiement"
RAPPORT_MENSUEL = "rapport_mensuel"


@dataclass(frozen=True)
class EmailContenu:
    type: str
    objet: str
    html: str
    # Résumé court conservé dans le journal des envois
    resume: str


def _page(club: str, titre: str, corps: str, signature: str) -> str:
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        f"<h1 style=\"color: #1a1a1a;\">{escape(club)}</h1>"
        f"<h2>{escape(titre)}</h2>"
        f"{corps}"
        f"<p>Cordialement,<br /><strong>{escape(signature)}</strong></p>"
        "</div>"
    )


def relance_cotisation(club: str, nom_membre: str, montant: float, mois: str, jour_limite: int, currency: str) -> EmailContenu:
    corps = (
        f"<p>Bonjour {escape(nom_membre)},</p>"
        f"<p>Nous constatons que votre cotisation du mois de <strong>{escape(mois)}</strong> "
        "n'a pas encore été reçue.</p>"
        f"<p><strong>Montant dû :</strong> {montant:.2f} {currency}<br />"
        f"<strong>Date limite :</strong> {jour_limite:02d} {escape(mois)}</p>"
        "<p>Merci de régulariser votre situation dans les meilleurs délais.</p>"
    )
    return EmailContenu(
        type=RELANCE_COTISATION,
        objet=f"Rappel Cotisation - {club}",
        html=_page(club, "Rappel de cotisation", corps, f"Le Bureau - {club}"),
        resume=f"Relance envoyée pour {mois}",
    )


def confirmation_paiement(
    club: str,
    saison: str,
    nom_membre: str,
    montant: float,
    mois: str,
    total_paye: float,
    reste_a_payer: float,
    currency: str,
) -> EmailContenu:
    corps = (
        f"<p>Bonjour {escape(nom_membre)},</p>"
        f"<p>Votre paiement de <strong>{montant:.2f} {currency}</strong> pour le mois de "
        f"<strong>{escape(mois)}</strong> a bien été enregistré.</p>"
        f"<p><strong>Total payé (Saison {escape(saison)}) :</strong> {total_paye:.2f} {currency}<br />"
        f"<strong>Reste à payer :</strong> {reste_a_payer:.2f} {currency}</p>"
        "<p>Merci de votre contribution !</p>"
    )
    return EmailContenu(
        type=CONFIRMATION_PAIEMENT,
        objet=f"Confirmation de Paiement - {club}",
        html=_page(club, "Paiement reçu", corps, f"Le Bureau - {club}"),
        resume=f"Confirmation envoyée pour paiement de {montant:.2f} {currency}",
    )


def rapport_mensuel(club: str, mois: str, kpis: KpisFinanciers, depenses_mois: float, currency: str) -> EmailContenu:
    lignes = [
        ("Solde actuel", f"{kpis.solde_actuel:.2f} {currency}"),
        ("Taux de recouvrement", f"{kpis.taux_recouvrement:.0f}%"),
        ("Dépenses du mois", f"{depenses_mois:.2f} {currency}"),
        ("Total recettes", f"{kpis.total_recettes:.2f} {currency}"),
        ("Total dépenses", f"{kpis.total_depenses:.2f} {currency}"),
    ]
    table = "".join(f"<tr><td>{label}</td><td style=\"text-align: right;\">{valeur}</td></tr>" for label, valeur in lignes)
    corps = (
        "<p>Bonjour,</p>"
        f"<p>Veuillez trouver ci-dessous le rapport financier du mois de <strong>{escape(mois)}</strong>.</p>"
        f"<table style=\"width: 100%;\"><tbody>{table}</tbody></table>"
        "<p>Consultez le tableau de bord pour plus de détails.</p>"
    )
    return EmailContenu(
        type=RAPPORT_MENSUEL,
        objet=f"Rapport Financier Mensuel - {mois}",
        html=_page(club, "Rapport financier mensuel", corps, f"Le Trésorier - {club}"),
        resume=f"Rapport mensuel {mois}",
    )
