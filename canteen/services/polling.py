"""Periodic refresh tied to the lifetime of a view."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from canteen.core.config import settings

logger = logging.getLogger(__name__)


class Poller:
    """Calls ``callback`` every ``interval`` seconds until stopped.

    ``stop()`` cancels the task, including a refresh that is still in flight,
    so nothing is applied after the owning view has gone away. A failing
    refresh is logged and polling carries on.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval: float | None = None,
        *,
        name: str = "poll",
    ) -> None:
        self.callback = callback
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.name = name
        self.runs = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        # wait() never re-raises the poll task's cancellation, so a
        # CancelledError here belongs to the caller and propagates.
        await asyncio.wait({task})
        logger.debug("[POLL] %s stopped after %s runs", self.name, self.runs)

    async def __aenter__(self) -> "Poller":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("[POLL] %s refresh failed; retrying in %ss", self.name, self.interval)
            self.runs += 1
            await asyncio.sleep(self.interval)
