"""Messagerie : diffusion temps réel et réconciliation optimiste."""

from __future__ import annotations

from pantheres_finance.messaging.feed import MessageEvent, MessageFeed
from pantheres_finance.messaging.optimistic import EntreeFil, EtatEnvoi, OptimisticThread

__all__ = [
    "EntreeFil",
    "EtatEnvoi",
    "MessageEvent",
    "MessageFeed",
    "OptimisticThread",
]
