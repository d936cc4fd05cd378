"""Enregistrement des paiements de cotisation et état des cotisations."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_permission
from pantheres_finance.auth.rbac import Permission, has_permission
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.config.loader import AppConfig
from pantheres_finance.db.tables import Membre, Paiement
from pantheres_finance.engine.cotisations import derive_cotisation
from pantheres_finance.models import (
    AccesRefuseError,
    EtatCotisation,
    EtatPaiement,
    IntrouvableError,
    ModePaiement,
    PaiementDejaEnregistreError,
    StatutMembre,
    ValidationMetierError,
)
from pantheres_finance.services.membres import load_membre

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaiementData:
    """Une mensualité de cotisation à enregistrer."""

    membre_id: int
    mois: int
    annee: int
    montant: float
    mode_paiement: ModePaiement
    date_paiement: datetime.date | None = None


def record_paiement(session: Session, ctx: AuthContext, data: PaiementData) -> Paiement:
    """Enregistre une mensualité.

    Raises:
        PaiementDejaEnregistreError: Le mois est déjà payé pour ce membre
            (contrainte d'unicité membre/mois/année de la base).
    """
    require_permission(ctx, Permission.ADD_PAIEMENT)

    if not 1 <= data.mois <= 12:
        raise ValidationMetierError(f"Mois invalide : {data.mois} (attendu entre 1 et 12)")
    if data.montant <= 0:
        raise ValidationMetierError(f"Montant invalide : {data.montant}")

    membre = load_membre(session, data.membre_id)

    paiement = Paiement(
        membre_id=data.membre_id,
        mois=data.mois,
        annee=data.annee,
        montant=data.montant,
        mode_paiement=ModePaiement(data.mode_paiement).value,
        date_paiement=data.date_paiement or datetime.date.today(),
    )
    session.add(paiement)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.info(
            "Paiement refusé (doublon) : membre #%d, %02d/%d", data.membre_id, data.mois, data.annee
        )
        raise PaiementDejaEnregistreError(data.membre_id, data.mois, data.annee) from e
    session.refresh(paiement)
    session.expire(membre, ["paiements"])

    logger.info(
        "Paiement enregistré : membre #%d, %02d/%d, %.2f par %s",
        data.membre_id,
        data.mois,
        data.annee,
        data.montant,
        ctx.email,
    )
    return paiement


def list_paiements(
    session: Session,
    ctx: AuthContext,
    membre_id: int,
    annee: int | None = None,
) -> list[Paiement]:
    if not has_permission(ctx.role, Permission.VIEW_MEMBRES) and ctx.member_id != membre_id:
        raise AccesRefuseError("Accès refusé. Paiements réservés au membre concerné.")
    query = session.query(Paiement).filter(Paiement.membre_id == membre_id)
    if annee is not None:
        query = query.filter(Paiement.annee == annee)
    return query.order_by(Paiement.annee, Paiement.mois).all()


def load_paiement(session: Session, membre_id: int, paiement_id: int) -> Paiement:
    paiement = session.get(Paiement, paiement_id)
    if paiement is None or paiement.membre_id != membre_id:
        raise IntrouvableError(f"Paiement introuvable : {paiement_id}")
    return paiement


def etat_cotisation_membre(membre: Membre, config: AppConfig, today: datetime.date) -> EtatCotisation:
    return derive_cotisation(membre, membre.paiements, config.saison, today)


def query_etats_cotisations(
    session: Session,
    config: AppConfig,
    today: datetime.date,
    *,
    etat: EtatPaiement | None = None,
) -> list[EtatCotisation]:
    """État de cotisation de tous les membres encore au club, trié par nom."""
    membres = (
        session.query(Membre)
        .filter(Membre.statut != StatutMembre.DEPART.value)
        .order_by(Membre.nom_prenom)
        .all()
    )
    etats = [etat_cotisation_membre(m, config, today) for m in membres]
    if etat is not None:
        etats = [e for e in etats if e.etat_paiement == etat]
    return etats


def etats_cotisations(
    session: Session,
    ctx: AuthContext,
    config: AppConfig,
    today: datetime.date,
    *,
    etat: EtatPaiement | None = None,
) -> list[EtatCotisation]:
    require_permission(ctx, Permission.VIEW_MEMBRES)
    return query_etats_cotisations(session, config, today, etat=etat)
