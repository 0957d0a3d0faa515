"""Periodic background save of the project being edited."""

import asyncio
import contextlib

from src.strategist.core.config import get_settings
from src.strategist.core.logging import get_logger
from src.strategist.state.store import ProjectStore

logger = get_logger(__name__)


class AutoSaver:
    """Calls ``store.save_project()`` every ``interval`` seconds while a project is loaded.

    Ticks with no current project are skipped. A manual save may run at the
    same time; whichever write lands last wins.
    """

    def __init__(self, store: ProjectStore, interval: float | None = None):
        self.store = store
        self.interval = interval if interval is not None else get_settings().auto_save_interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug("Auto-save started", interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.debug("Auto-save stopped")

    async def save_now(self) -> bool:
        """Run one save if a project is loaded. Returns True when a save succeeded."""
        if not self.store.state.current_project:
            return False
        result = await self.store.save_project()
        if not result.ok:
            logger.warning("Auto-save failed", error=result.message)
        return result.ok

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.save_now()
            except Exception:
                logger.exception(
                    "Auto-save tick raised", project_id=self.store.state.current_project
                )
