"""Indicateurs financiers du tableau de bord."""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Sequence
from typing import Protocol

from pantheres_finance.models import EtatCotisation, EtatPaiement, KpisFinanciers


class LedgerRow(Protocol):
    id: int
    date: datetime.date
    entree: float
    sortie: float


def compute_kpis(
    transactions: Iterable[LedgerRow],
    etats: Sequence[EtatCotisation],
    membres_actifs: int,
) -> KpisFinanciers:
    """Agrège recettes, dépenses, solde et taux de recouvrement."""
    total_recettes = 0.0
    total_depenses = 0.0
    for t in transactions:
        total_recettes += t.entree
        total_depenses += t.sortie

    total_du = sum(e.total_du for e in etats)
    total_paye = sum(e.total_paye for e in etats)
    taux = 100.0 if total_du == 0 else total_paye / total_du * 100

    return KpisFinanciers(
        total_recettes=total_recettes,
        total_depenses=total_depenses,
        solde_actuel=total_recettes - total_depenses,
        taux_recouvrement=taux,
        membres_actifs=membres_actifs,
        membres_en_retard=sum(1 for e in etats if e.etat_paiement == EtatPaiement.RETARD),
    )


def running_balances(transactions: Iterable[LedgerRow]) -> dict[int, float]:
    """Solde progressif par transaction, dans l'ordre (date, id)."""
    balances: dict[int, float] = {}
    solde = 0.0
    for t in sorted(transactions, key=lambda row: (row.date, row.id)):
        solde += t.entree - t.sortie
        balances[t.id] = solde
    return balances
