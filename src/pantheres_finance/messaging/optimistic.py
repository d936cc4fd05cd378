"""Fil de discussion local avec affichage optimiste des envois.

Un message envoyé apparaît immédiatement sous un identifiant temporaire
(état ``pending``). Si l'écriture aboutit, l'entrée est remplacée sur place
par le message canonique (``confirmed``) ; si elle échoue, l'entrée est
retirée (``failed``). Aucun nouvel essai n'est tenté.

Les événements temps réel sont ajoutés dans leur ordre d'arrivée, sans
retri par date, et ignorés si un message de même identifiant est déjà
affiché.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from enum import Enum

from pantheres_finance.messaging.feed import MessageEvent

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp-"


class EtatEnvoi(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class EntreeFil:
    """Message affiché dans le fil, éventuellement encore en attente."""

    id: int | str
    contenu: str
    etat: EtatEnvoi
    message: MessageEvent | None = None

    @property
    def is_temporary(self) -> bool:
        return isinstance(self.id, str) and self.id.startswith(TEMP_PREFIX)


Writer = Callable[[str], MessageEvent]


class OptimisticThread:
    def __init__(self, initial: Iterable[MessageEvent] = ()) -> None:
        self._entries: list[EntreeFil] = []
        for event in initial:
            self.receive(event)

    @property
    def entries(self) -> list[EntreeFil]:
        return list(self._entries)

    @property
    def pending(self) -> list[EntreeFil]:
        return [e for e in self._entries if e.etat == EtatEnvoi.PENDING]

    def _index(self, entry_id: int | str) -> int | None:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        return None

    def begin(self, contenu: str) -> str:
        """Ajoute l'entrée optimiste et renvoie son identifiant temporaire."""
        temp_id = f"{TEMP_PREFIX}{uuid.uuid4().hex}"
        self._entries.append(EntreeFil(id=temp_id, contenu=contenu, etat=EtatEnvoi.PENDING))
        return temp_id

    def confirm(self, temp_id: str, message: MessageEvent) -> EntreeFil:
        """Remplace l'entrée temporaire par le message canonique."""
        index = self._index(temp_id)
        if index is None:
            raise KeyError(temp_id)

        confirmed = EntreeFil(id=message.id, contenu=message.contenu, etat=EtatEnvoi.CONFIRMED, message=message)
        if self._index(message.id) is not None:
            # L'événement temps réel est arrivé avant la confirmation
            del self._entries[index]
        else:
            self._entries[index] = confirmed
        return confirmed

    def fail(self, temp_id: str) -> EntreeFil:
        """Retire l'entrée temporaire après un échec d'écriture."""
        index = self._index(temp_id)
        if index is None:
            raise KeyError(temp_id)
        entry = self._entries.pop(index)
        return replace(entry, etat=EtatEnvoi.FAILED)

    def send(self, contenu: str, writer: Writer) -> EntreeFil:
        """Envoi optimiste : l'erreur de l'écriture est propagée après retrait."""
        temp_id = self.begin(contenu)
        try:
            message = writer(contenu)
        except Exception:
            self.fail(temp_id)
            logger.warning("Envoi du message %s échoué, entrée retirée", temp_id)
            raise
        return self.confirm(temp_id, message)

    def receive(self, event: MessageEvent) -> bool:
        """Ajoute un événement reçu ; False s'il est déjà affiché."""
        if self._index(event.id) is not None:
            logger.debug("Message #%d déjà affiché, événement ignoré", event.id)
            return False
        self._entries.append(EntreeFil(id=event.id, contenu=event.contenu, etat=EtatEnvoi.CONFIRMED, message=event))
        return True
