"""DebouncedSaver — batches rapid answer edits into one whole-map write.

Each edit calls :meth:`DebouncedSaver.schedule` with the full answer map.
The write fires once no further edit has arrived for ``delay`` seconds.

Every scheduled write is a ``PendingWrite`` with an explicit state:

    pending -> superseded   a newer edit arrived before it fired
    pending -> committing -> committed
    committing -> failed    the save raised, or the teardown flush timed out

Commits are serialised, so an older write that is already in flight
finishes before a newer one starts; in-flight writes are never aborted
by a newer edit, only superseded while still pending.  A failed save is
not retried: the caller's in-memory answers are untouched, ``status``
becomes ``error`` and the next edit schedules a fresh write.

On teardown :meth:`flush` commits whatever is still pending with a short
timeout.  A write that cannot finish inside that window is lost; this is
the one accepted loss window.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from intake_forms.constants import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_FLUSH_TIMEOUT_SECONDS
from intake_forms.models.enums import SaveStatus, WriteState

logger = logging.getLogger(__name__)

SaveFn = Callable[[dict[str, Any]], Awaitable[datetime]]


@dataclass
class PendingWrite:
    """One debounced whole-map write."""

    answers: dict[str, Any]
    state: WriteState = WriteState.PENDING
    scheduled_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    committed_at: datetime | None = None
    error: BaseException | None = None


class DebouncedSaver:
    """Debounces answer-map saves through an async ``save`` callable.

    Args:
        save: coroutine function taking the answer map and returning the
            server's update time (e.g. a bound ``IntakeClient.save_responses``
            wrapped with the session and slug)
        delay: quiescence window in seconds
        flush_timeout: how long :meth:`flush` may block at teardown
    """

    def __init__(
        self,
        save: SaveFn,
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        flush_timeout: float = DEFAULT_FLUSH_TIMEOUT_SECONDS,
    ) -> None:
        self._save = save
        self._delay = delay
        self._flush_timeout = flush_timeout
        self._lock = asyncio.Lock()
        self._current: PendingWrite | None = None
        self._timer: asyncio.Task | None = None
        # Strong references to every timer task until it finishes
        self._tasks: set[asyncio.Task] = set()

        self.status: SaveStatus = SaveStatus.IDLE
        self.last_saved_at: datetime | None = None

    @property
    def current(self) -> PendingWrite | None:
        """The most recently scheduled write."""
        return self._current

    @property
    def active_tasks(self) -> int:
        """Timer tasks still sleeping or committing."""
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, answers: dict[str, Any]) -> PendingWrite:
        """Queue a write of ``answers``, superseding any still-pending write.

        Must be called from within a running event loop.
        """
        previous = self._current
        if previous is not None and previous.state is WriteState.PENDING:
            previous.state = WriteState.SUPERSEDED
            if self._timer is not None:
                self._timer.cancel()

        write = PendingWrite(answers=dict(answers))
        self._current = write
        task = asyncio.create_task(self._fire_after_delay(write))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._timer = task
        return write

    async def _fire_after_delay(self, write: PendingWrite) -> None:
        await asyncio.sleep(self._delay)
        await self._commit(write)

    async def _commit(self, write: PendingWrite) -> None:
        async with self._lock:
            # Superseded while waiting for an earlier commit to finish
            if write.state is not WriteState.PENDING:
                return
            write.state = WriteState.COMMITTING
            self.status = SaveStatus.SAVING
            try:
                updated_at = await self._save(dict(write.answers))
            except Exception as exc:
                logger.exception("Autosave failed")
                write.state = WriteState.FAILED
                write.error = exc
                self.status = SaveStatus.ERROR
                return
            write.state = WriteState.COMMITTED
            write.committed_at = updated_at
            self.last_saved_at = updated_at
            if write is self._current:
                self.status = SaveStatus.SAVED

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def flush(self) -> PendingWrite | None:
        """Commit any pending write now, waiting at most ``flush_timeout``.

        Also waits (within the same timeout) for an in-flight commit to
        finish.  Returns the latest write so the caller can inspect its
        final state.
        """
        write = self._current
        if write is None:
            return None

        if write.state is WriteState.PENDING and self._timer is not None:
            self._timer.cancel()

        try:
            await asyncio.wait_for(self._commit(write), timeout=self._flush_timeout)
        except asyncio.TimeoutError:
            logger.warning("Autosave flush timed out after %.1fs", self._flush_timeout)
            write.state = WriteState.FAILED
            write.error = TimeoutError("flush timed out")
            self.status = SaveStatus.ERROR
        return write

    async def aclose(self) -> None:
        """Flush, then wait for earlier in-flight commits to finish.

        Earlier commits get the same ``flush_timeout``; they are left
        running rather than cancelled if they overrun it.
        """
        await self.flush()
        if self._tasks:
            _, still_running = await asyncio.wait(
                set(self._tasks), timeout=self._flush_timeout
            )
            if still_running:
                logger.warning(
                    "Autosave closed with %d commit(s) still in flight", len(still_running)
                )
        self._timer = None
