# clinic/services/session_reaper.py
import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionReaper:
    """Background task that deletes expired login sessions on a fixed interval."""

    def __init__(self, session_factory: Callable[[], Session], interval_seconds: int = 300):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def run_once(self) -> int:
        db = self.session_factory()
        try:
            return SessionStore(db).purge_expired()
        finally:
            db.close()

    async def _loop(self):
        while True:
            try:
                await asyncio.to_thread(self.run_once)
            except SQLAlchemyError as e:
                # Transient store errors are retried on the next tick
                logger.error(f"Session purge failed: {e}")
            except Exception:
                logger.exception("Unexpected error in session reaper; retrying next interval")
            await asyncio.sleep(self.interval_seconds)

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info(f"Session reaper started (interval={self.interval_seconds}s)")

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Session reaper stopped")
