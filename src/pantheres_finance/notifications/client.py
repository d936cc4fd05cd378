"""Client du service d'emails transactionnels (API HTTP JSON)."""

from __future__ import annotations

import logging
import os

import requests

from pantheres_finance.config.loader import EmailConfig
from pantheres_finance.models import EnvoiResultat

logger = logging.getLogger(__name__)

ENV_API_KEY = "RESEND_API_KEY"
TIMEOUT_SECONDS = 30


class EmailClient:
    """Envoie un email HTML et renvoie un EnvoiResultat, sans lever.

    Les erreurs réseau, les réponses en erreur et l'absence de clé d'API sont
    converties en résultat d'échec, à journaliser par l'appelant.
    """

    def __init__(
        self,
        config: EmailConfig,
        api_key: str | None = None,
        http: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.api_key = api_key if api_key is not None else os.getenv(ENV_API_KEY, "")
        self._http = http or requests.Session()
        if not self.api_key:
            logger.warning("%s non défini : les emails ne seront pas envoyés", ENV_API_KEY)

    def send(self, to: str, subject: str, html: str) -> EnvoiResultat:
        if not self.api_key:
            return EnvoiResultat(success=False, error=f"{ENV_API_KEY} non configurée")
        if not to:
            return EnvoiResultat(success=False, error="Adresse email du destinataire manquante")

        payload = {"from": self.config.sender, "to": [to], "subject": subject, "html": html}
        try:
            response = self._http.post(
                self.config.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.warning("Erreur de connexion au service d'emails : %s", e)
            return EnvoiResultat(success=False, error=f"Erreur de connexion : {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code >= 400:
            detail = body.get("message") or response.text or f"HTTP {response.status_code}"
            logger.warning("Envoi refusé pour %s (HTTP %d) : %s", to, response.status_code, detail)
            return EnvoiResultat(success=False, error=str(detail))

        message_id = body.get("id")
        logger.info("Email envoyé à %s : %s", to, subject)
        return EnvoiResultat(success=True, message_id=str(message_id) if message_id else None)
