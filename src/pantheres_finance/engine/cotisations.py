"""Calcul de l'état des cotisations d'un membre."""

from __future__ import annotations

import datetime
import math
from collections.abc import Iterable
from typing import Protocol

from pantheres_finance.config.loader import SaisonConfig
from pantheres_finance.models import EtatCotisation, EtatPaiement


class MembreLike(Protocol):
    id: int
    nom_prenom: str
    email: str | None
    cotisation_mensuelle: float


class PaiementLike(Protocol):
    mois: int
    annee: int
    montant: float


def compute_elapsed_months(
    season_start: datetime.date,
    now: datetime.date,
    season_duration_months: int,
) -> int:
    """Nombre de mois écoulés depuis le début de saison, mois courant inclus.

    Le résultat est borné à [1, season_duration_months] : avant le début de
    saison on compte 1 mois, après la fin on sature à la durée de saison.
    """
    months = (now.year - season_start.year) * 12 + (now.month - season_start.month) + 1
    return max(1, min(months, season_duration_months))


def compute_total_due(monthly_due: float, elapsed_months: int) -> float:
    return monthly_due * elapsed_months


def compute_remaining(total_due: float, total_paid: float) -> float:
    """Reste à payer, jamais négatif."""
    return max(total_due - total_paid, 0)


def compute_percentage_paid(total_paid: float, total_due: float) -> int:
    """Pourcentage payé arrondi au plus proche (0,5 vers le haut), plafonné à 100 (100 si rien n'est dû)."""
    if total_due == 0:
        return 100
    return min(math.floor(total_paid / total_due * 100 + 0.5), 100)


def compute_status(remaining: float) -> EtatPaiement:
    return EtatPaiement.A_JOUR if remaining <= 0 else EtatPaiement.RETARD


def season_months(saison: SaisonConfig) -> list[tuple[int, int]]:
    """Liste des couples (année, mois) couverts par la saison."""
    months: list[tuple[int, int]] = []
    year, month = saison.start_date.year, saison.start_date.month
    for _ in range(saison.duration_months):
        months.append((year, month))
        month += 1
        if month > 12:
            month = 1
            year += 1
    return months


def season_payments(paiements: Iterable[PaiementLike], saison: SaisonConfig) -> list[PaiementLike]:
    """Filtre les paiements rattachés à un mois de la saison."""
    window = set(season_months(saison))
    return [p for p in paiements if (p.annee, p.mois) in window]


def derive_cotisation(
    membre: MembreLike,
    paiements: Iterable[PaiementLike],
    saison: SaisonConfig,
    today: datetime.date,
) -> EtatCotisation:
    """Dérive l'état de cotisation d'un membre à la date ``today``."""
    elapsed = compute_elapsed_months(saison.start_date, today, saison.duration_months)
    total_due = compute_total_due(membre.cotisation_mensuelle, elapsed)
    total_paid = sum(p.montant for p in season_payments(paiements, saison))
    remaining = compute_remaining(total_due, total_paid)

    return EtatCotisation(
        membre_id=membre.id,
        nom_prenom=membre.nom_prenom,
        email=membre.email,
        cotisation_mensuelle=membre.cotisation_mensuelle,
        mois_ecoules=elapsed,
        total_du=total_due,
        total_paye=total_paid,
        reste_a_payer=remaining,
        pourcentage_paye=compute_percentage_paid(total_paid, total_due),
        etat_paiement=compute_status(remaining),
    )
