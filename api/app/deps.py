"""Dépendances FastAPI : configuration, session de base, contexte d'authentification."""

from __future__ import annotations

import datetime
from collections.abc import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from pantheres_finance.auth.session import SESSION_COOKIE, AuthContext, SessionUser, decode_session_token, extract_token
from pantheres_finance.config.loader import AppConfig
from pantheres_finance.messaging.feed import MessageFeed
from pantheres_finance.notifications.client import EmailClient
from pantheres_finance.services.membres import build_auth_context


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_session(request: Request) -> Iterator[Session]:
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_today() -> datetime.date:
    return datetime.date.today()


def get_feed(request: Request) -> MessageFeed:
    return request.app.state.feed


def get_email_client(request: Request) -> EmailClient:
    return request.app.state.email_client


def get_session_user(request: Request) -> SessionUser:
    """Utilisateur de la requête ; le middleware l'a déjà décodé sur /dashboard."""
    user = getattr(request.state, "session_user", None)
    if user is not None:
        return user
    token = extract_token(request.headers.get("authorization"), request.cookies.get(SESSION_COOKIE))
    return decode_session_token(token, request.app.state.jwt_secret)


def get_auth_context(
    user: SessionUser = Depends(get_session_user),
    session: Session = Depends(get_session),
) -> AuthContext:
    return build_auth_context(session, user)
