"""Diffusion en mémoire des insertions dans la table des messages."""

from __future__ import annotations

import datetime
import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageEvent:
    """Ligne de message insérée, telle que diffusée aux abonnés."""

    id: int
    parent_id: int | None
    membre_id: int | None
    auteur: str | None
    sujet: str
    contenu: str
    type_message: str
    statut: str
    is_from_tresorier: bool
    created_at: datetime.datetime
    # Auteur du fil racine, pour filtrer la visibilité côté abonné
    thread_owner_id: int | None

    @property
    def thread_id(self) -> int:
        return self.parent_id if self.parent_id is not None else self.id


Subscriber = Callable[[MessageEvent], None]


class MessageFeed:
    """Publication / abonnement des événements "message inséré".

    Les abonnés reçoivent les événements dans l'ordre de publication. Un
    abonné qui lève une exception est journalisé sans interrompre la
    diffusion aux autres.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._publish_lock = threading.RLock()
        self._subscribers: dict[int, Subscriber] = {}
        self._ids = itertools.count(1)

    def subscribe(self, callback: Subscriber) -> int:
        with self._lock:
            token = next(self._ids)
            self._subscribers[token] = callback
        logger.debug("Abonné %d inscrit au fil des messages", token)
        return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            removed = self._subscribers.pop(token, None)
        if removed is not None:
            logger.debug("Abonné %d désinscrit du fil des messages", token)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: MessageEvent) -> None:
        # La publication est sérialisée pour garantir l'ordre chez chaque abonné
        with self._publish_lock:
            with self._lock:
                subscribers = list(self._subscribers.items())
            for token, callback in subscribers:
                try:
                    callback(event)
                except Exception:
                    logger.exception("Abonné %d : échec de traitement du message #%d", token, event.id)
