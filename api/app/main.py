"""Application FastAPI — point d'entrée du backend API."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response

from pantheres_finance.auth.rbac import DASHBOARD_ROOT, can_access_page
from pantheres_finance.auth.session import SESSION_COOKIE, decode_session_token, extract_token
from pantheres_finance.config.loader import load_config
from pantheres_finance.db.database import create_db_engine, init_db, make_session_factory
from pantheres_finance.messaging.feed import MessageFeed
from pantheres_finance.models import (
    AccesRefuseError,
    ConfigError,
    IntrouvableError,
    NonAuthentifieError,
    PaiementDejaEnregistreError,
    ValidationMetierError,
)
from pantheres_finance.notifications.client import EmailClient

from .cron import router as cron_router
from .messages import router as messages_router
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Charge la configuration YAML et ouvre la base au démarrage."""
    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    config = load_config(config_dir)
    application.state.config = config
    logger.info("Configuration chargée depuis %s", config_dir)

    engine = create_db_engine()
    init_db(engine)
    application.state.session_factory = make_session_factory(engine)
    application.state.feed = MessageFeed()
    application.state.email_client = EmailClient(config.email)
    application.state.jwt_secret = os.getenv("AUTH_JWT_SECRET", "")
    application.state.cron_secret = os.getenv("CRON_SECRET", "")
    if not application.state.jwt_secret:
        logger.warning("AUTH_JWT_SECRET non défini : aucune session ne sera acceptée")
    yield
    engine.dispose()


app = FastAPI(
    title="Panthères Finance API",
    description="Gestion financière du club : membres, cotisations, transactions, budget, messages.",
    lifespan=lifespan,
)


def _is_dashboard_path(path: str) -> bool:
    return path == DASHBOARD_ROOT or path.startswith(DASHBOARD_ROOT + "/")


@app.middleware("http")
async def rbac_gate(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Protège /dashboard* : connexion requise, puis section autorisée pour le rôle."""
    path = request.url.path
    if not _is_dashboard_path(path):
        return await call_next(request)

    token = extract_token(request.headers.get("authorization"), request.cookies.get(SESSION_COOKIE))
    try:
        user = decode_session_token(token, request.app.state.jwt_secret)
    except (NonAuthentifieError, AccesRefuseError) as e:
        logger.info("Accès %s refusé : %s", path, e)
        return RedirectResponse(f"/login?redirectTo={quote(path)}", status_code=307)

    if not can_access_page(user.role, path):
        logger.info("Section %s interdite au rôle %s", path, user.role.value)
        return RedirectResponse(DASHBOARD_ROOT, status_code=307)

    request.state.session_user = user
    return await call_next(request)


def _error(status_code: int) -> Callable[[Request, Exception], Awaitable[JSONResponse]]:
    async def handler(_request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


app.add_exception_handler(NonAuthentifieError, _error(401))
app.add_exception_handler(AccesRefuseError, _error(403))
app.add_exception_handler(IntrouvableError, _error(404))
app.add_exception_handler(PaiementDejaEnregistreError, _error(409))
app.add_exception_handler(ValidationMetierError, _error(422))


@app.exception_handler(ConfigError)
async def config_error(_request: Request, exc: ConfigError) -> JSONResponse:
    logger.error("Erreur de configuration : %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Erreur de configuration interne"})


# CORS
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(messages_router)
app.include_router(cron_router)
