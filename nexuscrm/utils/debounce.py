"""Quiescence timer for rapidly changing input (search boxes)."""
import asyncio
import logging
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Delays a value until input has been quiet for `delay` seconds.

    Each `push` restarts the window. Once the window elapses without another
    push, `value` takes the last pushed value and `on_change` fires once.
    """

    def __init__(self, initial: T, delay: float, on_change: Optional[Callable[[T], None]] = None):
        """
        Args:
            initial: Starting value for both the raw and the effective value.
            delay: Quiescence window in seconds.
            on_change: Called with the new effective value after each quiet period.
        """
        self.raw = initial
        self.value = initial
        self.delay = delay
        self.on_change = on_change
        self._timer: Optional[asyncio.Task] = None

    @property
    def is_pending(self) -> bool:
        """True while the raw input differs from the effective value."""
        return self.raw != self.value

    def push(self, value: T) -> None:
        self.raw = value
        self.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._settle())

    def cancel(self) -> None:
        if self._timer and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def flush(self) -> None:
        """Apply the raw value immediately."""
        self.cancel()
        self._apply()

    async def wait(self) -> None:
        """Wait for the pending window (if any) to settle."""
        timer = self._timer
        if timer is not None:
            try:
                await timer
            except asyncio.CancelledError:
                pass

    async def _settle(self) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        self._apply()

    def _apply(self) -> None:
        if self.value == self.raw:
            return
        self.value = self.raw
        if self.on_change is not None:
            self.on_change(self.value)
