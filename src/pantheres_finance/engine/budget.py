"""Comparaison budget alloué / réalisé."""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from typing import Protocol

from pantheres_finance.models import LigneBudgetRealisee, StatutBudget, TypeTransaction


class TransactionLike(Protocol):
    type: str
    categorie: str
    entree: float
    sortie: float


class BudgetLike(Protocol):
    id: int
    categorie: str
    type: str
    budget_alloue: float
    periode_debut: datetime.date
    periode_fin: datetime.date


def realise_par_categorie(transactions: Iterable[TransactionLike]) -> dict[tuple[str, str], float]:
    """Somme des entrées (Recette) ou sorties (Dépense) par (type, catégorie)."""
    realise: dict[tuple[str, str], float] = {}
    for t in transactions:
        key = (TypeTransaction(t.type).value, t.categorie)
        montant = t.entree if t.type == TypeTransaction.RECETTE else t.sortie
        realise[key] = realise.get(key, 0.0) + montant
    return realise


def compute_budget_percentage(realized: float, allocated: float) -> float:
    if allocated <= 0:
        return 0.0
    return realized / allocated * 100


def compute_budget_status(type_ligne: TypeTransaction | str, percentage: float) -> StatutBudget:
    """Statut d'une ligne de budget.

    Dépense : au-delà de 100 % le budget est dépassé, au-delà de 80 % à surveiller.
    Recette : la polarité est inversée, c'est la sous-réalisation qui est signalée.
    """
    if TypeTransaction(type_ligne) == TypeTransaction.DEPENSE:
        if percentage > 100:
            return StatutBudget.DEPASSE
        if percentage > 80:
            return StatutBudget.ATTENTION
        return StatutBudget.OK

    if percentage >= 100:
        return StatutBudget.OK
    if percentage >= 80:
        return StatutBudget.ATTENTION
    return StatutBudget.DEPASSE


def enrich_budget_line(ligne: BudgetLike, realized: float) -> LigneBudgetRealisee:
    percentage = compute_budget_percentage(realized, ligne.budget_alloue)
    return LigneBudgetRealisee(
        id=ligne.id,
        categorie=ligne.categorie,
        type=TypeTransaction(ligne.type),
        budget_alloue=ligne.budget_alloue,
        periode_debut=ligne.periode_debut,
        periode_fin=ligne.periode_fin,
        realise=realized,
        ecart=realized - ligne.budget_alloue,
        pourcentage=percentage,
        statut=compute_budget_status(ligne.type, percentage),
    )


def enrich_budget_lines(
    lignes: Iterable[BudgetLike],
    transactions: Iterable[TransactionLike],
) -> list[LigneBudgetRealisee]:
    """Enrichit chaque ligne de budget avec le réalisé de sa catégorie."""
    realise = realise_par_categorie(transactions)
    return [enrich_budget_line(b, realise.get((TypeTransaction(b.type).value, b.categorie), 0.0)) for b in lignes]
