"""
PlayerSlot: the one current SyncEngine for a player connection.

Tick and action handlers always go through slot.engine at call time, never a
captured engine. A session switch builds the new engine completely, swaps the
reference in one assignment, then closes the old engine, so no tick can reach
the previous session's segment list after the swap.
"""
from __future__ import annotations

import logging

from echolisten.player.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


class PlayerSlot:
    def __init__(self, engine: SyncEngine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> SyncEngine | None:
        return self._engine

    def swap(self, engine: SyncEngine) -> SyncEngine | None:
        """Install engine as current; close and return the previous one."""
        previous, self._engine = self._engine, engine
        if previous is not None and previous is not engine:
            previous.close()
            logger.debug("Player slot: %s -> %s", previous.session_id, engine.session_id)
        return previous

    def close(self) -> None:
        """Unmount: stop the current engine and clear the slot."""
        engine, self._engine = self._engine, None
        if engine is not None:
            engine.close()
