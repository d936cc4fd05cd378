from __future__ import annotations

from typing import Any

import pytest

from pantheres_finance.config.loader import AppConfig
from pantheres_finance.notifications.client import EmailClient


class _Response:
    def __init__(self, status_code: int, body: dict[str, Any]) -> None:
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self) -> dict[str, Any]:
        return self._body


class RecordingHttp:
    """Service d'emails simulé : refuse les destinataires listés dans ``rejected``."""

    def __init__(self, rejected: tuple[str, ...] = ()) -> None:
        self.rejected = rejected
        self.sent: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> _Response:
        payload = kwargs["json"]
        if payload["to"][0] in self.rejected:
            return _Response(422, {"message": "Adresse refusée"})
        self.sent.append(payload)
        return _Response(200, {"id": f"msg_{len(self.sent)}"})


@pytest.fixture
def http() -> RecordingHttp:
    return RecordingHttp()


@pytest.fixture
def email_client(sample_config: AppConfig, http: RecordingHttp) -> EmailClient:
    return EmailClient(sample_config.email, api_key="re_test", http=http)


@pytest.fixture
def make_http():
    """Fabrique de services d'emails simulés."""
    return RecordingHttp
