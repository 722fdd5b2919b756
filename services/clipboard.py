from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Hashable, Optional, Protocol

from domain.errors import ClipboardFailed

log = logging.getLogger(__name__)

COPY_INDICATOR_SECONDS = 2.0

class ClipboardWriter(Protocol):
    async def write(self, text: str) -> None:
        """Raise ClipboardFailed if the text could not be copied."""
        ...

OnChange = Callable[[Optional[Hashable]], Awaitable[None]]

class ClipboardService:
    """Copies text and keeps a transient "just copied" marker for one entry.

    Each instance owns at most one pending reset timer. A new copy cancels it
    before arming its own, and a timer only clears the marker it set.
    """

    def __init__(self, writer: ClipboardWriter, *, indicator_seconds: float = COPY_INDICATOR_SECONDS,
                 on_change: Optional[OnChange] = None) -> None:
        self.writer = writer
        self.indicator_seconds = indicator_seconds
        self.on_change = on_change
        self._copied: Optional[Hashable] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def copied_id(self) -> Optional[Hashable]:
        return self._copied

    def is_copied(self, entry_id: Hashable) -> bool:
        return self._copied is not None and self._copied == entry_id

    async def copy(self, text: str, entry_id: Hashable) -> bool:
        try:
            await self.writer.write(text)
        except ClipboardFailed as e:
            log.warning("Clipboard write failed for %r: %s", entry_id, e)
            return False

        self._cancel_timer()
        self._copied = entry_id
        self._timer = asyncio.create_task(self._expire(entry_id))
        await self._notify()
        return True

    async def _expire(self, entry_id: Hashable) -> None:
        await asyncio.sleep(self.indicator_seconds)
        if self._copied != entry_id:
            return
        self._copied = None
        self._timer = None
        await self._notify()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            await self.on_change(self._copied)
        except Exception as e:
            # the marker is best-effort, like the write itself
            log.warning("Copy indicator refresh failed: %s", e)

    def close(self) -> None:
        self._cancel_timer()
        self._copied = None
