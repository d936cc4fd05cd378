"""Gestion des membres et résolution du contexte d'authentification."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_permission
from pantheres_finance.auth.rbac import Permission, has_permission
from pantheres_finance.auth.session import AuthContext, SessionUser
from pantheres_finance.config.loader import AppConfig
from pantheres_finance.db.tables import Membre
from pantheres_finance.models import AccesRefuseError, IntrouvableError, StatutMembre, ValidationMetierError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembreData:
    """Champs saisis dans le formulaire membre."""

    nom_prenom: str
    telephone: str | None
    email: str | None
    statut: StatutMembre
    role_joueur: bool
    role_bureau: bool
    fonction_bureau: str | None
    date_entree: datetime.date


def find_by_email(session: Session, email: str) -> Membre | None:
    """Membre rattaché à un email (comparaison insensible à la casse)."""
    return (
        session.query(Membre)
        .filter(func.lower(Membre.email) == email.strip().lower())
        .order_by(Membre.id)
        .first()
    )


def build_auth_context(session: Session, user: SessionUser) -> AuthContext:
    """Construit le contexte explicite de la requête à partir de la session.

    Le rôle vient toujours du jeton ; la fiche membre (si elle existe) apporte
    l'identifiant et la fonction au bureau.
    """
    membre = find_by_email(session, user.email)
    if membre is None:
        logger.info("Aucune fiche membre pour %s", user.email)
    return AuthContext(
        user_id=user.user_id,
        email=user.email,
        role=user.role,
        member_id=membre.id if membre is not None else None,
        fonction_bureau=membre.fonction_bureau if membre is not None and membre.role_bureau else None,
    )


def _apply(membre: Membre, data: MembreData, config: AppConfig) -> None:
    nom = data.nom_prenom.strip()
    if not nom:
        raise ValidationMetierError("Le nom du membre est obligatoire")

    membre.nom_prenom = nom
    membre.telephone = data.telephone or None
    membre.email = data.email.strip().lower() if data.email else None
    membre.statut = StatutMembre(data.statut).value
    membre.role_joueur = data.role_joueur
    membre.role_bureau = data.role_bureau
    membre.fonction_bureau = (data.fonction_bureau or None) if data.role_bureau else None
    membre.date_entree = data.date_entree
    membre.cotisation_mensuelle = config.montant_cotisation(data.role_joueur, data.role_bureau)


def query_membres(
    session: Session,
    *,
    search: str | None = None,
    statut: StatutMembre | None = None,
) -> list[Membre]:
    query = session.query(Membre)
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(Membre.nom_prenom.ilike(like), Membre.email.ilike(like), Membre.telephone.ilike(like))
        )
    if statut is not None:
        query = query.filter(Membre.statut == StatutMembre(statut).value)
    return query.order_by(Membre.nom_prenom).all()


def list_membres(
    session: Session,
    ctx: AuthContext,
    *,
    search: str | None = None,
    statut: StatutMembre | None = None,
) -> list[Membre]:
    require_permission(ctx, Permission.VIEW_MEMBRES)
    return query_membres(session, search=search, statut=statut)


def load_membre(session: Session, membre_id: int) -> Membre:
    membre = session.get(Membre, membre_id)
    if membre is None:
        raise IntrouvableError(f"Membre introuvable : {membre_id}")
    return membre


def get_membre(session: Session, ctx: AuthContext, membre_id: int) -> Membre:
    """Fiche membre : visible par les rôles habilités ou par le membre lui-même."""
    if not has_permission(ctx.role, Permission.VIEW_MEMBRES) and ctx.member_id != membre_id:
        raise AccesRefuseError("Accès refusé. Fiche réservée au membre concerné.")
    return load_membre(session, membre_id)


def create_membre(session: Session, ctx: AuthContext, data: MembreData, config: AppConfig) -> Membre:
    require_permission(ctx, Permission.CREATE_MEMBRE)

    membre = Membre()
    _apply(membre, data, config)
    session.add(membre)
    session.commit()
    session.refresh(membre)

    logger.info("Membre créé : %s (#%d) par %s", membre.nom_prenom, membre.id, ctx.email)
    return membre


def update_membre(
    session: Session,
    ctx: AuthContext,
    membre_id: int,
    data: MembreData,
    config: AppConfig,
) -> Membre:
    require_permission(ctx, Permission.EDIT_MEMBRE)

    membre = load_membre(session, membre_id)
    _apply(membre, data, config)
    session.commit()
    session.refresh(membre)

    logger.info("Membre modifié : #%d par %s", membre.id, ctx.email)
    return membre


def delete_membre(session: Session, ctx: AuthContext, membre_id: int) -> None:
    """Supprime le membre et, par cascade, son historique de paiements."""
    require_permission(ctx, Permission.DELETE_MEMBRE)

    membre = load_membre(session, membre_id)
    session.delete(membre)
    session.commit()

    logger.info("Membre supprimé : #%d par %s", membre_id, ctx.email)
