"""Lecture de la session fournie par le fournisseur d'identité."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt

from pantheres_finance.auth.rbac import Role, parse_role
from pantheres_finance.models import AccesRefuseError, NonAuthentifieError

logger = logging.getLogger(__name__)

JWT_ALGORITHMS = ["HS256"]
SESSION_COOKIE = "access_token"


@dataclass(frozen=True)
class SessionUser:
    """Utilisateur authentifié tel que décrit par le jeton de session."""

    user_id: str
    email: str
    role: Role


@dataclass(frozen=True)
class AuthContext:
    """Contexte explicite transmis aux gardes et aux actions."""

    user_id: str
    email: str
    role: Role
    member_id: int | None = None
    fonction_bureau: str | None = None

    @property
    def is_tresorier(self) -> bool:
        return self.role == Role.TRESORIER


def extract_token(authorization: str | None, cookie_token: str | None) -> str | None:
    """Récupère le jeton depuis l'en-tête Bearer, sinon depuis le cookie."""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    if cookie_token and cookie_token.strip():
        return cookie_token.strip()
    return None


def decode_session_token(token: str | None, secret: str) -> SessionUser:
    """Valide le jeton et en extrait l'utilisateur et son rôle.

    Raises:
        NonAuthentifieError: Jeton absent, expiré, invalide ou secret non configuré.
        AccesRefuseError: Rôle absent ou inconnu dans les métadonnées.
    """
    if not token:
        raise NonAuthentifieError("Non authentifié")
    if not secret:
        logger.error("Secret de session non configuré : toutes les sessions sont refusées")
        raise NonAuthentifieError("Non authentifié")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=JWT_ALGORITHMS,
            options={"verify_aud": False, "require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise NonAuthentifieError("Session expirée. Reconnectez-vous.") from e
    except jwt.InvalidTokenError as e:
        raise NonAuthentifieError("Jeton de session invalide") from e

    email = claims.get("email")
    if not isinstance(email, str) or not email:
        raise NonAuthentifieError("Jeton de session sans email")

    metadata = claims.get("user_metadata")
    raw_role = metadata.get("role") if isinstance(metadata, dict) else None
    role = parse_role(raw_role)
    if role is None:
        logger.warning("Rôle absent ou inconnu pour %s : %r", email, raw_role)
        raise AccesRefuseError("Accès refusé. Rôle utilisateur non reconnu.")

    return SessionUser(user_id=str(claims["sub"]), email=email, role=role)
