"""Fixtures pour les tests d'intégration API."""

from __future__ import annotations

import datetime
from collections.abc import Callable, Iterator
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

JWT_SECRET = "secret-de-test"
CRON_SECRET = "cron-de-test"
TODAY = datetime.date(2026, 5, 10)


def make_token(role: str | None, email: str, secret: str = JWT_SECRET) -> str:
    claims: dict[str, object] = {
        "sub": f"user-{email}",
        "email": email,
        "exp": datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1),
        "user_metadata": {"role": role} if role is not None else {},
    }
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """TestClient FastAPI avec configuration de test et base SQLite en mémoire."""
    config_dir = str(Path(__file__).parent.parent / "fixtures" / "config")
    monkeypatch.setenv("CONFIG_DIR", config_dir)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("AUTH_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("CRON_SECRET", CRON_SECRET)
    monkeypatch.delenv("RESEND_API_KEY", raising=False)

    from api.app.deps import get_today
    from api.app.main import app

    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> Callable[..., dict[str, str]]:
    """En-têtes Authorization pour un rôle et un email donnés."""

    def _headers(role: str | None, email: str | None = None) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(role, email or f'{role}@pantheres.com')}"}

    return _headers


@pytest.fixture
def tresorier(auth: Callable[..., dict[str, str]]) -> dict[str, str]:
    return auth("tresorier")


@pytest.fixture
def create_membre(client: TestClient, tresorier: dict[str, str]) -> Callable[..., dict[str, object]]:
    """Crée un membre via l'API en tant que trésorier."""

    def _create(nom: str, email: str, **fields: object) -> dict[str, object]:
        body = {"nom_prenom": nom, "email": email, "date_entree": "2026-03-01", **fields}
        response = client.post("/dashboard/membres", json=body, headers=tresorier)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def token() -> Callable[..., str]:
    return make_token
