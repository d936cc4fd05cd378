"""Modèles de données métier, énumérations et hiérarchie d'exceptions."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import Enum


# --- Exceptions métier ---


class PantheresError(Exception):
    """Erreur de base pour l'application pantheres-finance."""


class ConfigError(PantheresError):
    """YAML malformé, clé manquante, valeur invalide."""


class NonAuthentifieError(PantheresError):
    """Session absente, expirée ou invalide."""


class AccesRefuseError(PantheresError):
    """Rôle insuffisant pour l'action demandée."""


class IntrouvableError(PantheresError):
    """Enregistrement introuvable (membre, paiement, transaction...)."""


class PaiementDejaEnregistreError(PantheresError):
    """Un paiement existe déjà pour ce membre, ce mois et cette année."""

    def __init__(self, membre_id: int, mois: int, annee: int) -> None:
        super().__init__("Ce mois est déjà payé")
        self.membre_id = membre_id
        self.mois = mois
        self.annee = annee


class ValidationMetierError(PantheresError):
    """Donnée incohérente refusée par une règle métier."""


# --- Énumérations ---


class StatutMembre(str, Enum):
    ACTIF = "Actif"
    BLESSE = "Blessé"
    DEPART = "Arrêt/Départ"


class TypeTransaction(str, Enum):
    RECETTE = "Recette"
    DEPENSE = "Dépense"


class ModePaiement(str, Enum):
    ESPECES = "Espèces"
    VIREMENT = "Virement"
    WAFACASH = "Wafacash/CashPlus"
    CHEQUE = "Chèque"


class EtatPaiement(str, Enum):
    A_JOUR = "À jour"
    RETARD = "Retard"


class StatutBudget(str, Enum):
    OK = "OK"
    ATTENTION = "Attention"
    # Pour une ligne de Recette, "Dépassé" signale une sous-réalisation.
    DEPASSE = "Dépassé"


class TypeMessage(str, Enum):
    REMARQUE = "remarque"
    ANOMALIE = "anomalie"
    QUESTION = "question"
    AUTRE = "autre"


class StatutMessage(str, Enum):
    NOUVEAU = "nouveau"
    EN_COURS = "en_cours"
    RESOLU = "resolu"


MOIS_FR = [
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
]

CATEGORIES_RECETTES = [
    "Cotisations",
    "Sponsoring",
    "Subventions",
    "Événements",
    "Dons",
    "Autre",
]

CATEGORIES_DEPENSES = [
    "Location Terrain",
    "Équipements",
    "Transport",
    "Arbitrage",
    "Événements",
    "Communication",
    "Frais Bancaires",
    "Autre",
]


# --- Dataclasses métier (frozen) ---


@dataclass(frozen=True)
class EtatCotisation:
    """État de cotisation dérivé d'un membre (jamais persisté)."""

    membre_id: int
    nom_prenom: str
    email: str | None
    cotisation_mensuelle: float
    mois_ecoules: int
    total_du: float
    total_paye: float
    reste_a_payer: float
    pourcentage_paye: int
    etat_paiement: EtatPaiement


@dataclass(frozen=True)
class LigneBudgetRealisee:
    """Ligne de budget enrichie du réalisé sur la période."""

    id: int | None
    categorie: str
    type: TypeTransaction
    budget_alloue: float
    periode_debut: datetime.date
    periode_fin: datetime.date
    realise: float
    ecart: float
    pourcentage: float
    statut: StatutBudget

    @property
    def ecart_nature(self) -> str | None:
        """Sens de l'écart d'une ligne "Dépassé" : dépassement (Dépense) ou sous-réalisation (Recette).

        None tant que la ligne n'est pas "Dépassé", y compris en "Attention".
        """
        if self.statut != StatutBudget.DEPASSE:
            return None
        if self.type == TypeTransaction.DEPENSE:
            return "depassement"
        return "sous_realisation"


@dataclass(frozen=True)
class KpisFinanciers:
    """Indicateurs du tableau de bord."""

    total_recettes: float
    total_depenses: float
    solde_actuel: float
    taux_recouvrement: float
    membres_actifs: int
    membres_en_retard: int


@dataclass(frozen=True)
class Alerte:
    """Alerte affichée sur le tableau de bord."""

    id: str
    type: str  # "critique", "warning" ou "info"
    categorie: str
    titre: str
    description: str
    lien: str
    libelle_action: str


@dataclass(frozen=True)
class EnvoiResultat:
    """Résultat d'un envoi d'email unitaire."""

    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class RapportEnvoi:
    """Bilan d'un envoi groupé (relances, rapport mensuel)."""

    total: int
    envoyes: list[str]
    erreurs: list[tuple[str, str]]
