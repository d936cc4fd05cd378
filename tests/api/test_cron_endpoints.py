"""Tests API : tâches planifiées de relance et de rapport mensuel."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

CRON_HEADERS = {"Authorization": "Bearer cron-de-test"}


class TestCronAuthorization:
    @pytest.mark.parametrize("path", ["/api/cron/relance-cotisations", "/api/cron/rapport-mensuel"])
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer mauvais"}, {"Authorization": "cron-de-test"}])
    def test_refused(self, client: TestClient, path: str, headers: dict[str, str]) -> None:
        response = client.get(path, headers=headers)
        assert response.status_code == 401
        assert response.text == "Unauthorized"

    def test_refused_when_secret_unset(self, client: TestClient) -> None:
        client.app.state.cron_secret = ""
        response = client.get("/api/cron/relance-cotisations", headers={"Authorization": "Bearer "})
        assert response.status_code == 401


class TestRelanceCotisations:
    def test_nobody_in_arrears(self, client: TestClient) -> None:
        response = client.get("/api/cron/relance-cotisations", headers=CRON_HEADERS)
        assert response.status_code == 200
        assert response.json() == {"message": "Aucun membre en retard à relancer"}

    def test_failures_reported_without_email_provider(self, client: TestClient, create_membre) -> None:
        create_membre("Youssef Alami", "youssef@example.com")

        body = client.get("/api/cron/relance-cotisations", headers=CRON_HEADERS).json()

        assert body["message"] == "Traitement des relances terminé"
        assert body["stats"]["total"] == 1
        assert body["stats"]["succes"] == 0
        assert body["stats"]["echecs"] == 1
        assert body["stats"]["details"] == [
            {"email": "youssef@example.com", "status": "failed", "error": "RESEND_API_KEY non configurée"}
        ]


class TestRapportMensuel:
    def test_no_bureau_member(self, client: TestClient, create_membre) -> None:
        create_membre("Youssef Alami", "youssef@example.com")
        response = client.get("/api/cron/rapport-mensuel", headers=CRON_HEADERS)
        assert response.json() == {"message": "Aucun membre du bureau trouvé"}

    def test_sent_to_bureau(self, client: TestClient, create_membre) -> None:
        create_membre("Salma Benali", "salma@example.com", role_bureau=True, fonction_bureau="Président")

        body = client.get("/api/cron/rapport-mensuel", headers=CRON_HEADERS).json()

        assert body["message"] == "Rapport mensuel envoyé"
        assert body["stats"]["total"] == 1
