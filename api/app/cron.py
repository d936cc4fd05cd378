"""Tâches planifiées déclenchées par HTTP : relances de cotisation et rapport mensuel."""

from __future__ import annotations

import datetime
import hmac
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.orm import Session

from pantheres_finance.config.loader import AppConfig
from pantheres_finance.notifications.client import EmailClient
from pantheres_finance.notifications.envois import envoyer_rapport_mensuel, relancer_membres_en_retard

from .deps import get_config, get_email_client, get_session, get_today
from .serializers import serialize_rapport_envoi

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron")


def _authorized(request: Request) -> bool:
    """Bearer CRON_SECRET ; sans secret configuré, tout appel est refusé."""
    secret = request.app.state.cron_secret
    if not secret:
        logger.error("CRON_SECRET non défini : tâche planifiée refusée")
        return False
    header = request.headers.get("authorization", "")
    return hmac.compare_digest(header, f"Bearer {secret}")


def _unauthorized() -> Response:
    return PlainTextResponse("Unauthorized", status_code=401)


@router.get("/relance-cotisations")
def relance_cotisations(
    request: Request,
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    client: EmailClient = Depends(get_email_client),
    today: datetime.date = Depends(get_today),
) -> Response:
    if not _authorized(request):
        return _unauthorized()

    rapport = relancer_membres_en_retard(session, client, config, today)
    if rapport.total == 0:
        return JSONResponse({"message": "Aucun membre en retard à relancer"})
    return JSONResponse({"message": "Traitement des relances terminé", "stats": serialize_rapport_envoi(rapport)})


@router.get("/rapport-mensuel")
def rapport_mensuel(
    request: Request,
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    client: EmailClient = Depends(get_email_client),
    today: datetime.date = Depends(get_today),
) -> Response:
    if not _authorized(request):
        return _unauthorized()

    rapport = envoyer_rapport_mensuel(session, client, config, today)
    if rapport.total == 0:
        return JSONResponse({"message": "Aucun membre du bureau trouvé"})
    return JSONResponse({"message": "Rapport mensuel envoyé", "stats": serialize_rapport_envoi(rapport)})
