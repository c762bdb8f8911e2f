"""Single-slot debounce timer driving body-content saves."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger("folio.editor")


class AutoSave:
    """Debounced auto-save on the running asyncio loop.

    At most one timer is pending. Each `trigger()` cancels it and starts a new
    one; when a timer fires, its save runs to completion even if another
    trigger arrives meanwhile (in-flight saves are never cancelled). Saves run
    one at a time in the order they were started, so a slow earlier save can
    never land after a later one.
    """

    def __init__(self, save_callback: Callable[[], Awaitable[None]], delay: float = 1.0) -> None:
        self._save_callback = save_callback
        self._delay = delay
        self._timer: asyncio.Task[None] | None = None
        self._last_save: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def saving(self) -> bool:
        return bool(self._inflight)

    def trigger(self) -> None:
        """Schedule a save after the debounce delay. Resets if called again."""
        self.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_save())

    def cancel(self) -> None:
        """Cancel any pending save."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def save_now(self) -> None:
        """Save immediately, canceling any pending debounce.

        Still waits behind a save that is already running.
        """
        self.cancel()
        await self._start_save()

    async def drain(self) -> None:
        """Wait for saves that already started."""
        while self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def _wait_then_save(self) -> None:
        await asyncio.sleep(self._delay)
        # Hand the save to its own task so a later cancel() only hits the next timer.
        self._timer = None
        self._start_save()

    def _start_save(self) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(self._save_after(self._last_save))
        self._last_save = task
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        task.add_done_callback(_log_failure)
        return task

    async def _save_after(self, previous: asyncio.Task[None] | None) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        await self._save_callback()


def _log_failure(task: asyncio.Task[None]) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Autosave failed", exc_info=task.exception())
