"""Jeux de données exportables : colonnes et lignes, indépendamment du format."""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import dataclass, field

from pantheres_finance.db.tables import Membre, Transaction
from pantheres_finance.models import EtatCotisation, LigneBudgetRealisee, TypeTransaction

TEXT = "text"
NUMBER = "number"
CURRENCY = "currency"
PERCENTAGE = "percentage"
DATE = "date"
STATUS = "status"
BOOLEAN = "boolean"

# Colonnes totalisées en pied de tableau
SUMMABLE = (NUMBER, CURRENCY)


@dataclass(frozen=True)
class Colonne:
    key: str
    label: str
    kind: str = TEXT
    width: int = 18


@dataclass(frozen=True)
class Tableau:
    """Jeu de données prêt à exporter."""

    nom: str
    titre: str
    colonnes: list[Colonne]
    lignes: list[dict[str, object]] = field(default_factory=list)

    @property
    def labels(self) -> list[str]:
        return [c.label for c in self.colonnes]

    def totaux(self) -> dict[str, float]:
        return {
            c.key: sum(float(row.get(c.key) or 0) for row in self.lignes)
            for c in self.colonnes
            if c.kind in SUMMABLE
        }


TRANSACTIONS_COLUMNS = [
    Colonne("date", "Date", DATE, 14),
    Colonne("type", "Type", STATUS, 12),
    Colonne("categorie", "Catégorie", TEXT, 18),
    Colonne("libelle", "Libellé", TEXT, 35),
    Colonne("tiers", "Tiers", TEXT, 20),
    Colonne("entree", "Entrée", CURRENCY, 16),
    Colonne("sortie", "Sortie", CURRENCY, 16),
    Colonne("mode_paiement", "Mode", TEXT, 16),
]

MEMBRES_COLUMNS = [
    Colonne("nom_prenom", "Nom & Prénom", TEXT, 25),
    Colonne("email", "Email", TEXT, 28),
    Colonne("telephone", "Téléphone", TEXT, 16),
    Colonne("statut", "Statut", STATUS, 12),
    Colonne("role_joueur", "Joueur", BOOLEAN, 10),
    Colonne("role_bureau", "Bureau", BOOLEAN, 10),
    Colonne("fonction_bureau", "Fonction", TEXT, 18),
    Colonne("cotisation_mensuelle", "Cotisation", CURRENCY, 14),
    Colonne("date_entree", "Membre depuis", DATE, 14),
]

COTISATIONS_COLUMNS = [
    Colonne("nom_prenom", "Membre", TEXT, 25),
    Colonne("cotisation_mensuelle", "Mensuelle", CURRENCY, 14),
    Colonne("mois_ecoules", "Mois écoulés", NUMBER, 12),
    Colonne("total_du", "Total Dû", CURRENCY, 14),
    Colonne("total_paye", "Total Payé", CURRENCY, 14),
    Colonne("reste_a_payer", "Reste à Payer", CURRENCY, 14),
    Colonne("pourcentage_paye", "Progression", PERCENTAGE, 12),
    Colonne("etat_paiement", "État", STATUS, 12),
]

BUDGET_COLUMNS = [
    Colonne("categorie", "Catégorie", TEXT, 20),
    Colonne("type", "Type", STATUS, 12),
    Colonne("budget_alloue", "Budget Alloué", CURRENCY, 16),
    Colonne("realise", "Réalisé", CURRENCY, 16),
    Colonne("ecart", "Écart", CURRENCY, 16),
    Colonne("pourcentage", "Consommation", PERCENTAGE, 14),
    Colonne("statut", "Statut", STATUS, 12),
]


def tableau_transactions(transactions: Iterable[Transaction]) -> Tableau:
    lignes = [
        {
            "date": t.date,
            "type": t.type,
            "categorie": t.categorie,
            "libelle": t.libelle,
            "tiers": t.tiers,
            "entree": t.entree,
            "sortie": t.sortie,
            "mode_paiement": t.mode_paiement,
        }
        for t in transactions
    ]
    return Tableau("transactions", "Journal des transactions", TRANSACTIONS_COLUMNS, lignes)


def tableau_membres(membres: Iterable[Membre]) -> Tableau:
    lignes = [
        {
            "nom_prenom": m.nom_prenom,
            "email": m.email,
            "telephone": m.telephone,
            "statut": m.statut,
            "role_joueur": m.role_joueur,
            "role_bureau": m.role_bureau,
            "fonction_bureau": m.fonction_bureau,
            "cotisation_mensuelle": m.cotisation_mensuelle,
            "date_entree": m.date_entree,
        }
        for m in membres
    ]
    return Tableau("membres", "Liste des membres", MEMBRES_COLUMNS, lignes)


def tableau_cotisations(etats: Iterable[EtatCotisation]) -> Tableau:
    lignes = [
        {
            "nom_prenom": e.nom_prenom,
            "cotisation_mensuelle": e.cotisation_mensuelle,
            "mois_ecoules": e.mois_ecoules,
            "total_du": e.total_du,
            "total_paye": e.total_paye,
            "reste_a_payer": e.reste_a_payer,
            "pourcentage_paye": e.pourcentage_paye,
            "etat_paiement": e.etat_paiement.value,
        }
        for e in etats
    ]
    return Tableau("cotisations", "État des cotisations", COTISATIONS_COLUMNS, lignes)


def tableau_budget(lignes_budget: Iterable[LigneBudgetRealisee]) -> Tableau:
    lignes = [
        {
            "categorie": b.categorie,
            "type": TypeTransaction(b.type).value,
            "budget_alloue": b.budget_alloue,
            "realise": b.realise,
            "ecart": b.ecart,
            "pourcentage": b.pourcentage,
            "statut": b.statut.value,
        }
        for b in lignes_budget
    ]
    return Tableau("budget", "Budget prévisionnel et réalisé", BUDGET_COLUMNS, lignes)


def format_montant(montant: float) -> str:
    """12.5 → "12,50"."""
    return f"{montant:.2f}".replace(".", ",")


def format_date(value: datetime.date | None) -> str:
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def format_cell(colonne: Colonne, value: object) -> str:
    """Rendu texte d'une cellule (CSV, PDF)."""
    if value is None:
        return ""
    if colonne.kind in (CURRENCY, NUMBER) and isinstance(value, (int, float)):
        return format_montant(value) if colonne.kind == CURRENCY else str(value)
    if colonne.kind == PERCENTAGE and isinstance(value, (int, float)):
        return f"{value:.0f}%"
    if colonne.kind == DATE and isinstance(value, datetime.date):
        return format_date(value)
    if colonne.kind == BOOLEAN:
        return "Oui" if value else "Non"
    return str(value)


def export_filename(nom: str, extension: str, today: datetime.date) -> str:
    return f"{nom}_{today.isoformat()}.{extension}"
