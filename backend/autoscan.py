"""Background autolinking of the active note once it stops changing."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from models import DEFAULT_CHECK_INTERVAL_MS

logger = logging.getLogger(__name__)


class AutoscanMonitor:
    """Decides when the active note has been stable long enough to scan.

    A note counts as changed whenever its length differs from the previous
    observation (or another note becomes active). It is scanned once per
    change, after ``check_interval`` milliseconds without further changes.
    """

    def __init__(
        self,
        check_interval: int = DEFAULT_CHECK_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.check_interval = check_interval
        self._clock = clock
        self._note_id: Optional[str] = None
        self._last_length = 0
        self._last_change = clock()
        self._scanned = False

    @property
    def scanned(self) -> bool:
        return self._scanned

    def observe(self, note_id: str, length: int, now: Optional[float] = None) -> bool:
        now = self._clock() if now is None else now
        if note_id != self._note_id or length != self._last_length:
            self._last_change = now
            self._scanned = False

        self._note_id = note_id
        self._last_length = length

        if self._scanned:
            return False
        return (now - self._last_change) * 1000 >= self.check_interval

    def mark_scanned(self, length: Optional[int] = None) -> None:
        """Record a finished scan; ``length`` is the note length it produced."""
        if length is not None:
            self._last_length = length
        self._scanned = True


class AutoscanLoop:
    """Polls at half the check interval and runs ``tick`` in a worker thread."""

    def __init__(self, tick: Callable[[], bool], interval: Callable[[], int]):
        self._tick = tick
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(max(self._interval(), 2) / 2000)
            try:
                await asyncio.to_thread(self._tick)
            except Exception:
                logger.warning("Autoscan tick failed", exc_info=True)
