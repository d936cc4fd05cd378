"""Lignes de budget et comparaison avec le réalisé."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_permission
from pantheres_finance.auth.rbac import Permission
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.db.tables import BudgetLigne
from pantheres_finance.engine.budget import enrich_budget_lines
from pantheres_finance.models import IntrouvableError, LigneBudgetRealisee, TypeTransaction, ValidationMetierError
from pantheres_finance.services.transactions import query_transactions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetData:
    categorie: str
    type: TypeTransaction
    budget_alloue: float
    periode_debut: datetime.date
    periode_fin: datetime.date


def _apply(ligne: BudgetLigne, data: BudgetData) -> None:
    if data.budget_alloue < 0:
        raise ValidationMetierError(f"Budget alloué invalide : {data.budget_alloue}")
    if data.periode_fin < data.periode_debut:
        raise ValidationMetierError("La fin de période précède son début")
    categorie = data.categorie.strip()
    if not categorie:
        raise ValidationMetierError("La catégorie est obligatoire")

    ligne.categorie = categorie
    ligne.type = TypeTransaction(data.type).value
    ligne.budget_alloue = data.budget_alloue
    ligne.periode_debut = data.periode_debut
    ligne.periode_fin = data.periode_fin


def load_budget_ligne(session: Session, ligne_id: int) -> BudgetLigne:
    ligne = session.get(BudgetLigne, ligne_id)
    if ligne is None:
        raise IntrouvableError(f"Ligne de budget introuvable : {ligne_id}")
    return ligne


def query_budget_with_realise(
    session: Session,
    debut: datetime.date,
    fin: datetime.date,
    *,
    chevauchement: bool = False,
) -> list[LigneBudgetRealisee]:
    """Lignes de budget de la période [debut, fin], enrichies du réalisé de la période.

    Par défaut seules les lignes comprises dans la période sont retenues ;
    avec ``chevauchement`` toute ligne qui la recoupe l'est aussi. Le réalisé
    d'une catégorie agrège les transactions de même type datées dans la
    période demandée.
    """
    query = session.query(BudgetLigne)
    if chevauchement:
        query = query.filter(BudgetLigne.periode_debut <= fin, BudgetLigne.periode_fin >= debut)
    else:
        query = query.filter(BudgetLigne.periode_debut >= debut, BudgetLigne.periode_fin <= fin)
    lignes = query.order_by(BudgetLigne.type, BudgetLigne.categorie).all()
    transactions = query_transactions(session, debut=debut, fin=fin)
    logger.debug("Budget %s → %s : %d lignes, %d transactions", debut, fin, len(lignes), len(transactions))
    return enrich_budget_lines(lignes, transactions)


def budget_with_realise(
    session: Session,
    ctx: AuthContext,
    debut: datetime.date,
    fin: datetime.date,
    *,
    chevauchement: bool = False,
) -> list[LigneBudgetRealisee]:
    require_permission(ctx, Permission.VIEW_BUDGET)
    return query_budget_with_realise(session, debut, fin, chevauchement=chevauchement)


def create_budget_ligne(session: Session, ctx: AuthContext, data: BudgetData) -> BudgetLigne:
    require_permission(ctx, Permission.EDIT_BUDGET)

    ligne = BudgetLigne()
    _apply(ligne, data)
    session.add(ligne)
    session.commit()
    session.refresh(ligne)

    logger.info("Ligne de budget créée : #%d %s/%s par %s", ligne.id, ligne.type, ligne.categorie, ctx.email)
    return ligne


def update_budget_ligne(session: Session, ctx: AuthContext, ligne_id: int, data: BudgetData) -> BudgetLigne:
    require_permission(ctx, Permission.EDIT_BUDGET)

    ligne = load_budget_ligne(session, ligne_id)
    _apply(ligne, data)
    session.commit()
    session.refresh(ligne)

    logger.info("Ligne de budget modifiée : #%d par %s", ligne.id, ctx.email)
    return ligne


def delete_budget_ligne(session: Session, ctx: AuthContext, ligne_id: int) -> None:
    require_permission(ctx, Permission.EDIT_BUDGET)

    ligne = load_budget_ligne(session, ligne_id)
    session.delete(ligne)
    session.commit()

    logger.info("Ligne de budget supprimée : #%d par %s", ligne_id, ctx.email)
