"""Journal des transactions : saisie, filtres et solde progressif."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_permission
from pantheres_finance.auth.rbac import Permission
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.db.tables import Transaction
from pantheres_finance.models import IntrouvableError, ModePaiement, TypeTransaction, ValidationMetierError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionData:
    """Saisie d'une transaction : un montant unique, ventilé selon le type."""

    date: datetime.date
    type: TypeTransaction
    categorie: str
    libelle: str
    montant: float
    mode_paiement: ModePaiement = ModePaiement.ESPECES
    sous_categorie: str | None = None
    tiers: str | None = None
    membre_id: int | None = None


def split_amount(type_transaction: TypeTransaction | str, montant: float) -> tuple[float, float]:
    """Ventile un montant en (entrée, sortie) : une Recette entre, une Dépense sort."""
    if TypeTransaction(type_transaction) == TypeTransaction.RECETTE:
        return montant, 0.0
    return 0.0, montant


def _apply(transaction: Transaction, data: TransactionData) -> None:
    if data.montant <= 0:
        raise ValidationMetierError(f"Montant invalide : {data.montant}")
    categorie = data.categorie.strip()
    libelle = data.libelle.strip()
    if not categorie:
        raise ValidationMetierError("La catégorie est obligatoire")
    if not libelle:
        raise ValidationMetierError("Le libellé est obligatoire")

    entree, sortie = split_amount(data.type, data.montant)
    transaction.date = data.date
    transaction.type = TypeTransaction(data.type).value
    transaction.categorie = categorie
    transaction.sous_categorie = data.sous_categorie or None
    transaction.tiers = data.tiers or None
    transaction.membre_id = data.membre_id
    transaction.libelle = libelle
    transaction.entree = entree
    transaction.sortie = sortie
    transaction.mode_paiement = ModePaiement(data.mode_paiement).value


def query_transactions(
    session: Session,
    *,
    type_transaction: TypeTransaction | None = None,
    categorie: str | None = None,
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    """Transactions filtrées, les plus récentes d'abord."""
    query = session.query(Transaction)
    if type_transaction is not None:
        query = query.filter(Transaction.type == TypeTransaction(type_transaction).value)
    if categorie:
        query = query.filter(Transaction.categorie == categorie)
    if debut is not None:
        query = query.filter(Transaction.date >= debut)
    if fin is not None:
        query = query.filter(Transaction.date <= fin)
    query = query.order_by(Transaction.date.desc(), Transaction.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def list_transactions(
    session: Session,
    ctx: AuthContext,
    *,
    type_transaction: TypeTransaction | None = None,
    categorie: str | None = None,
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    require_permission(ctx, Permission.VIEW_TRANSACTIONS)
    return query_transactions(
        session,
        type_transaction=type_transaction,
        categorie=categorie,
        debut=debut,
        fin=fin,
        limit=limit,
    )


def load_transaction(session: Session, transaction_id: int) -> Transaction:
    transaction = session.get(Transaction, transaction_id)
    if transaction is None:
        raise IntrouvableError(f"Transaction introuvable : {transaction_id}")
    return transaction


def create_transaction(session: Session, ctx: AuthContext, data: TransactionData) -> Transaction:
    require_permission(ctx, Permission.CREATE_TRANSACTION)

    transaction = Transaction()
    _apply(transaction, data)
    session.add(transaction)
    session.commit()
    session.refresh(transaction)

    logger.info(
        "Transaction créée : #%d %s %s %.2f par %s",
        transaction.id,
        transaction.type,
        transaction.categorie,
        data.montant,
        ctx.email,
    )
    return transaction


def update_transaction(
    session: Session,
    ctx: AuthContext,
    transaction_id: int,
    data: TransactionData,
) -> Transaction:
    require_permission(ctx, Permission.EDIT_TRANSACTION)

    transaction = load_transaction(session, transaction_id)
    _apply(transaction, data)
    session.commit()
    session.refresh(transaction)

    logger.info("Transaction modifiée : #%d par %s", transaction.id, ctx.email)
    return transaction


def delete_transaction(session: Session, ctx: AuthContext, transaction_id: int) -> None:
    require_permission(ctx, Permission.DELETE_TRANSACTION)

    transaction = load_transaction(session, transaction_id)
    session.delete(transaction)
    session.commit()

    logger.info("Transaction supprimée : #%d par %s", transaction_id, ctx.email)
