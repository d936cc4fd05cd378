"""Endpoints de la messagerie et flux temps réel des nouveaux messages."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket
from sqlalchemy.orm import Session

from pantheres_finance.auth.rbac import Permission, can_access_page, has_permission
from pantheres_finance.auth.session import SESSION_COOKIE, AuthContext, decode_session_token
from pantheres_finance.messaging.feed import MessageEvent, MessageFeed
from pantheres_finance.models import AccesRefuseError, NonAuthentifieError
from pantheres_finance.services import messages as messages_service
from pantheres_finance.services.membres import build_auth_context

from .deps import get_auth_context, get_feed, get_session
from .schemas import MessageIn, ReponseIn, StatutIn
from .serializers import serialize_event, serialize_message, serialize_thread

logger = logging.getLogger(__name__)

router = APIRouter()

WS_PATH = "/dashboard/messages/ws"
# Politique non respectée (RFC 6455)
WS_POLICY_VIOLATION = 1008


@router.get("/dashboard/messages")
def list_threads(
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> list[dict[str, object]]:
    return [serialize_thread(m) for m in messages_service.list_threads(session, ctx)]


@router.post("/dashboard/messages", status_code=201)
def create_thread(
    body: MessageIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    feed: MessageFeed = Depends(get_feed),
) -> dict[str, object]:
    return serialize_message(messages_service.create_thread(session, ctx, body.to_data(), feed))


@router.get("/dashboard/messages/{message_id}")
def get_thread(
    message_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> dict[str, object]:
    return serialize_thread(messages_service.get_thread(session, ctx, message_id))


@router.post("/dashboard/messages/{message_id}/reponses", status_code=201)
def reply(
    message_id: int,
    body: ReponseIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    feed: MessageFeed = Depends(get_feed),
) -> dict[str, object]:
    return serialize_message(messages_service.reply(session, ctx, message_id, body.contenu, feed))


@router.patch("/dashboard/messages/{message_id}/statut")
def update_statut(
    message_id: int,
    body: StatutIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> dict[str, object]:
    return serialize_message(messages_service.update_statut(session, ctx, message_id, body.statut))


def _websocket_context(websocket: WebSocket) -> AuthContext:
    """Contexte de la connexion ; le jeton vient du paramètre ``token`` ou du cookie."""
    token = websocket.query_params.get("token") or websocket.cookies.get(SESSION_COOKIE)
    user = decode_session_token(token, websocket.app.state.jwt_secret)
    if not can_access_page(user.role, WS_PATH) or not has_permission(user.role, Permission.VIEW_MESSAGES):
        raise AccesRefuseError("Accès refusé. Messagerie non autorisée pour ce rôle.")
    with websocket.app.state.session_factory() as session:
        return build_auth_context(session, user)


async def stop_sender(sender: asyncio.Task[None]) -> None:
    """Arrête la tâche d'envoi et récupère l'erreur qui l'aurait interrompue."""
    sender.cancel()
    try:
        with contextlib.suppress(asyncio.CancelledError):
            await sender
    except Exception:
        logger.warning("Flux messages interrompu par une erreur d'envoi", exc_info=True)


@router.websocket(WS_PATH)
async def messages_stream(websocket: WebSocket) -> None:
    """Pousse au client chaque message inséré qu'il a le droit de voir, dans l'ordre de publication."""
    try:
        ctx = _websocket_context(websocket)
    except (NonAuthentifieError, AccesRefuseError) as e:
        logger.info("Connexion temps réel refusée : %s", e)
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()
    feed: MessageFeed = websocket.app.state.feed
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[MessageEvent] = asyncio.Queue()

    def on_event(event: MessageEvent) -> None:
        # Appelé depuis le thread de la requête qui publie
        if messages_service.can_see(ctx, event):
            loop.call_soon_threadsafe(queue.put_nowait, event)

    async def forward() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json(serialize_event(event))

    token = feed.subscribe(on_event)
    sender = asyncio.create_task(forward())
    logger.debug("Flux messages ouvert pour %s", ctx.email)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        feed.unsubscribe(token)
        await stop_sender(sender)
        logger.debug("Flux messages fermé pour %s", ctx.email)
