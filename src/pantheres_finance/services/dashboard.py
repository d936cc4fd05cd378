"""Tableaux de bord : vue globale (trésorier, bureau) et vue personnelle (joueur)."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_permission
from pantheres_finance.auth.rbac import Permission
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.config.loader import AppConfig
from pantheres_finance.controls.alerts import AlertChecker
from pantheres_finance.db.tables import Membre, Paiement, Transaction
from pantheres_finance.engine.kpis import compute_kpis
from pantheres_finance.models import (
    Alerte,
    EtatCotisation,
    KpisFinanciers,
    LigneBudgetRealisee,
    StatutMembre,
    TypeTransaction,
    ValidationMetierError,
)
from pantheres_finance.services.budget import query_budget_with_realise
from pantheres_finance.services.membres import load_membre
from pantheres_finance.services.paiements import etat_cotisation_membre, query_etats_cotisations
from pantheres_finance.services.transactions import query_transactions

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS = 5


@dataclass(frozen=True)
class DashboardGlobal:
    kpis: KpisFinanciers
    alertes: list[Alerte]
    transactions_recentes: list[Transaction]
    cotisations: list[EtatCotisation]
    budget: list[LigneBudgetRealisee]


@dataclass(frozen=True)
class DashboardPersonnel:
    membre: Membre
    cotisation: EtatCotisation
    paiements: list[Paiement]


def count_membres_actifs(session: Session) -> int:
    return session.query(Membre).filter(Membre.statut == StatutMembre.ACTIF.value).count()


def query_kpis(session: Session, config: AppConfig, today: datetime.date) -> tuple[KpisFinanciers, list[EtatCotisation]]:
    etats = query_etats_cotisations(session, config, today)
    kpis = compute_kpis(query_transactions(session), etats, count_membres_actifs(session))
    return kpis, etats


def dashboard_global(
    session: Session,
    ctx: AuthContext,
    config: AppConfig,
    today: datetime.date,
) -> DashboardGlobal:
    require_permission(ctx, Permission.VIEW_DASHBOARD_GLOBAL)

    kpis, etats = query_kpis(session, config, today)
    lignes = query_budget_with_realise(
        session, config.saison.start_date, config.saison.end_date, chevauchement=True
    )
    alertes = AlertChecker.check(kpis, lignes, config)

    logger.debug(
        "Tableau de bord : solde %.2f, recouvrement %.1f%%, %d alertes",
        kpis.solde_actuel,
        kpis.taux_recouvrement,
        len(alertes),
    )
    return DashboardGlobal(
        kpis=kpis,
        alertes=alertes,
        transactions_recentes=query_transactions(session, limit=RECENT_TRANSACTIONS),
        cotisations=etats,
        budget=[b for b in lignes if b.type == TypeTransaction.DEPENSE],
    )


def dashboard_personnel(
    session: Session,
    ctx: AuthContext,
    config: AppConfig,
    today: datetime.date,
) -> DashboardPersonnel:
    """Espace personnel : cotisation et historique de paiements du membre connecté."""
    require_permission(ctx, Permission.VIEW_DASHBOARD_PERSONAL)
    if ctx.member_id is None:
        raise ValidationMetierError("Aucune fiche membre associée à ce compte")

    membre = load_membre(session, ctx.member_id)
    paiements = sorted(membre.paiements, key=lambda p: (p.annee, p.mois), reverse=True)
    return DashboardPersonnel(
        membre=membre,
        cotisation=etat_cotisation_membre(membre, config, today),
        paiements=paiements,
    )
