"""In-process transaction host — serializes calls and rolls back on failure."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable

from .interfaces.host import Journaled

logger = logging.getLogger(__name__)


class AtomicHost:
    """Execute vault calls one at a time with all-or-nothing semantics.

    Every registered participant is checkpointed when a transaction opens.
    If the body raises, all participants are restored before the exception
    propagates, so no partial borrow-without-supply state is ever visible.
    """

    def __init__(self, participants: Iterable[Journaled] = ()) -> None:
        self._participants: list[Journaled] = list(participants)
        self._lock = asyncio.Lock()

    def register(self, participant: Journaled) -> None:
        self._participants.append(participant)

    @asynccontextmanager
    async def transaction(self, label: str) -> AsyncIterator[None]:
        async with self._lock:
            saved: list[tuple[Journaled, Any]] = [
                (p, p.checkpoint()) for p in self._participants
            ]
            try:
                yield
            except BaseException as e:
                for participant, state in reversed(saved):
                    participant.restore(state)
                logger.warning("Transaction '%s' reverted: %s", label, e)
                raise

    @asynccontextmanager
    async def view(self, label: str) -> AsyncIterator[None]:
        async with self._lock:
            logger.debug("View '%s'", label)
            yield
