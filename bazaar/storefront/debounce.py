"""Asyncio debouncer for filter inputs."""
import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from bazaar.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DELAY = 0.5

Commit = Callable[[Any], Union[None, Awaitable[None]]]

_NOTHING = object()


class Debouncer:
    """
    Coalesce rapid updates: only the last value pushed within ``delay``
    seconds is committed.
    """

    def __init__(self, commit: Commit, delay: float = DEFAULT_DELAY):
        self._commit = commit
        self.delay = delay
        self._value: Any = _NOTHING
        self._task: Optional[asyncio.Task] = None
        self.last_error: Optional[BaseException] = None

    @property
    def pending(self) -> bool:
        return self._value is not _NOTHING

    def push(self, value: Any) -> None:
        """Replace the pending value and restart the timer."""
        self._value = value
        self._cancel_timer()
        self._task = asyncio.get_running_loop().create_task(self._wait_and_commit())
        self._task.add_done_callback(self._on_done)

    async def flush(self) -> None:
        """Commit the pending value now (no-op when nothing is pending)."""
        self._cancel_timer()
        await self._fire()

    def cancel(self) -> None:
        """Drop the pending value."""
        self._cancel_timer()
        self._value = _NOTHING

    async def _wait_and_commit(self) -> None:
        await asyncio.sleep(self.delay)
        self._task = None
        await self._fire()

    async def _fire(self) -> None:
        if self._value is _NOTHING:
            return
        value, self._value = self._value, _NOTHING
        result = self._commit(value)
        if inspect.isawaitable(result):
            await result

    def _on_done(self, task: asyncio.Task) -> None:
        # a timer-driven commit has no awaiting caller to raise into
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.last_error = error
            logger.error(f"Debounced commit failed: {type(error).__name__}: {error}")

    def _cancel_timer(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
