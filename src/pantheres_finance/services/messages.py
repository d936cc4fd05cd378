"""Messages des membres au trésorier : fils, réponses et statut."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_auth, require_permission
from pantheres_finance.auth.rbac import Permission, has_permission
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.db.tables import Message
from pantheres_finance.messaging.feed import MessageEvent, MessageFeed
from pantheres_finance.models import (
    AccesRefuseError,
    IntrouvableError,
    StatutMessage,
    TypeMessage,
    ValidationMetierError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageData:
    sujet: str
    contenu: str
    type_message: TypeMessage = TypeMessage.REMARQUE


def to_event(message: Message, thread_owner_id: int | None) -> MessageEvent:
    return MessageEvent(
        id=message.id,
        parent_id=message.parent_id,
        membre_id=message.membre_id,
        auteur=message.auteur.nom_prenom if message.auteur is not None else None,
        sujet=message.sujet,
        contenu=message.contenu,
        type_message=message.type_message,
        statut=message.statut,
        is_from_tresorier=message.is_from_tresorier,
        created_at=message.created_at,
        thread_owner_id=thread_owner_id,
    )


def can_see(ctx: AuthContext, event: MessageEvent) -> bool:
    """Le trésorier voit tous les fils, les autres uniquement les leurs."""
    if has_permission(ctx.role, Permission.REPLY_MESSAGE):
        return True
    return ctx.member_id is not None and event.thread_owner_id == ctx.member_id


def _publish(feed: MessageFeed | None, message: Message, thread_owner_id: int | None) -> None:
    if feed is not None:
        feed.publish(to_event(message, thread_owner_id))


def load_message(session: Session, message_id: int) -> Message:
    message = session.get(Message, message_id)
    if message is None:
        raise IntrouvableError(f"Message introuvable : {message_id}")
    return message


def list_threads(session: Session, ctx: AuthContext) -> list[Message]:
    """Fils de discussion (messages racines), du plus récent au plus ancien."""
    require_permission(ctx, Permission.VIEW_MESSAGES)

    query = session.query(Message).filter(Message.parent_id.is_(None))
    if not has_permission(ctx.role, Permission.REPLY_MESSAGE):
        if ctx.member_id is None:
            return []
        query = query.filter(Message.membre_id == ctx.member_id)
    return query.order_by(Message.created_at.desc(), Message.id.desc()).all()


def get_thread(session: Session, ctx: AuthContext, message_id: int) -> Message:
    require_permission(ctx, Permission.VIEW_MESSAGES)

    message = load_message(session, message_id)
    if message.parent_id is not None:
        message = load_message(session, message.parent_id)
    if not has_permission(ctx.role, Permission.REPLY_MESSAGE) and message.membre_id != ctx.member_id:
        raise AccesRefuseError("Accès refusé. Fil réservé à son auteur.")
    return message


def create_thread(
    session: Session,
    ctx: AuthContext,
    data: MessageData,
    feed: MessageFeed | None = None,
) -> Message:
    require_permission(ctx, Permission.SEND_MESSAGE)
    if ctx.member_id is None:
        raise ValidationMetierError("Aucune fiche membre associée à ce compte")

    sujet = data.sujet.strip()
    contenu = data.contenu.strip()
    if not sujet or not contenu:
        raise ValidationMetierError("Veuillez remplir tous les champs")

    message = Message(
        membre_id=ctx.member_id,
        sujet=sujet,
        contenu=contenu,
        type_message=TypeMessage(data.type_message).value,
        statut=StatutMessage.NOUVEAU.value,
        is_from_tresorier=ctx.is_tresorier,
    )
    session.add(message)
    session.commit()
    session.refresh(message)

    logger.info("Message #%d (%s) envoyé par %s", message.id, message.type_message, ctx.email)
    _publish(feed, message, message.membre_id)
    return message


def reply(
    session: Session,
    ctx: AuthContext,
    parent_id: int,
    contenu: str,
    feed: MessageFeed | None = None,
) -> Message:
    """Répond à un fil.

    La réponse du trésorier marque le fil comme résolu. L'auteur du fil peut
    y ajouter une relance ; les autres membres n'y ont pas accès.
    """
    require_auth(ctx)

    parent = load_message(session, parent_id)
    if parent.parent_id is not None:
        parent = load_message(session, parent.parent_id)

    is_tresorier = has_permission(ctx.role, Permission.REPLY_MESSAGE)
    if not is_tresorier and (ctx.member_id is None or parent.membre_id != ctx.member_id):
        raise AccesRefuseError("Accès refusé. Seul le trésorier ou l'auteur du fil peut répondre.")

    texte = contenu.strip()
    if not texte:
        raise ValidationMetierError("La réponse est vide")

    reponse = Message(
        membre_id=ctx.member_id,
        parent_id=parent.id,
        sujet=f"Re: {parent.sujet}",
        contenu=texte,
        type_message=parent.type_message,
        statut=StatutMessage.NOUVEAU.value,
        is_from_tresorier=is_tresorier,
    )
    session.add(reponse)
    if is_tresorier:
        parent.statut = StatutMessage.RESOLU.value
    session.commit()
    session.refresh(reponse)
    session.expire(parent, ["reponses"])

    logger.info("Réponse #%d au fil #%d par %s", reponse.id, parent.id, ctx.email)
    _publish(feed, reponse, parent.membre_id)
    return reponse


def update_statut(session: Session, ctx: AuthContext, message_id: int, statut: StatutMessage) -> Message:
    require_permission(ctx, Permission.REPLY_MESSAGE)

    message = load_message(session, message_id)
    message.statut = StatutMessage(statut).value
    session.commit()
    session.refresh(message)

    logger.info("Fil #%d passé au statut %s par %s", message.id, message.statut, ctx.email)
    return message
