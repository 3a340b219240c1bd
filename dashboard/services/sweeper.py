"""Periodic removal of stale tokens, sessions and OAuth states."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from dashboard.models.token import TOKEN_EXPIRY
from dashboard.services.interfaces import Store
from dashboard.services.oauth_service import OAuthStateService
from dashboard.services.session_service import SessionService
from dashboard.services.token_service import TokenService

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    tokens: int = 0
    sessions: int = 0
    oauth_states: int = 0


def sweep_once(store: Store) -> SweepResult:
    """Run one best-effort pass. Each step logs and swallows its own store errors."""
    result = SweepResult(
        tokens=TokenService(store).sweep(TOKEN_EXPIRY),
        sessions=SessionService(store).sweep_expired(),
        oauth_states=OAuthStateService(store).sweep_expired(),
    )
    logger.debug(f"Sweep finished: {result}")
    return result


class Sweeper:
    """Background task calling ``sweep_once`` every ``interval`` seconds.

    ``store_factory`` returns a ``(store, close)`` pair so each pass gets its
    own database session.
    """

    def __init__(
        self,
        store_factory: Callable[[], tuple[Store, Callable[[], None]]],
        interval: float,
    ) -> None:
        self._store_factory = store_factory
        self._interval = interval
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.info(f"Sweeper started, interval {self._interval}s")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sweeper stopped")

    def run_once(self) -> SweepResult:
        store, close = self._store_factory()
        try:
            return sweep_once(store)
        finally:
            close()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                # The deletes block; keep them off the event loop
                await asyncio.to_thread(self.run_once)
            except Exception:
                logger.exception("Sweep pass failed")
