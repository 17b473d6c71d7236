# backend/utils/debounce.py
import asyncio
import inspect
import logging
import re
from typing import Any, Awaitable, Callable, Optional, Union

from config import settings

logger = logging.getLogger(__name__)

CommitCallback = Callable[[int], Union[None, Awaitable[Any]]]

# Leading base-10 integer: "12" -> 12, "12abc" -> 12, "abc" -> invalid
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_quantity_text(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text or "")
    return int(match.group(1)) if match else None


class QuantityControl:
    """
    Optimistic quantity field with a trailing-edge debounced commit.

    Clicks and typed values change the local value at once; only the last
    value inside the debounce window is handed to ``on_change``. While a
    commit is pending, values pushed from upstream do not overwrite what the
    user sees. Must be used from a running event loop.
    """

    def __init__(self, value: int, on_change: CommitCallback, *,
                 min_value: int = 0, debounce_ms: Optional[int] = None):
        self.on_change = on_change
        self.min_value = min_value
        self.debounce_ms = settings.QUANTITY_DEBOUNCE_MS if debounce_ms is None else debounce_ms

        self.committed_value = value
        self.local_value = value
        self.pending_value: Optional[int] = None
        self.input_text = str(value)
        self.is_editing = False
        self.last_error: Optional[BaseException] = None

        self._timer: Optional[asyncio.TimerHandle] = None
        self._inflight: Optional[asyncio.Task] = None
        self._generation = 0
        self._commit_lock = asyncio.Lock()
        self._closed = False

    @property
    def display(self) -> str:
        return self.input_text

    @property
    def has_pending(self) -> bool:
        busy = self._inflight is not None and not self._inflight.done()
        return self.pending_value is not None or busy

    # ---- buttons ----
    def increment(self) -> None:
        self._set_local(self.local_value + 1)

    def decrement(self) -> None:
        new_value = max(self.min_value, self.local_value - 1)
        if new_value != self.local_value:
            self._set_local(new_value)

    # ---- text entry ----
    def focus(self) -> None:
        self.is_editing = True
        self.input_text = str(self.local_value)

    def type_text(self, text: str) -> None:
        self.input_text = text

    def blur(self) -> None:
        self.is_editing = False
        new_value = parse_quantity_text(self.input_text)
        if new_value is not None and new_value >= self.min_value and new_value != self.local_value:
            self.local_value = new_value
            self.input_text = str(new_value)
            self._schedule(new_value)
        else:
            self.input_text = str(self.local_value)

    def press_key(self, key: str) -> None:
        if key == "Enter":
            self.blur()
        elif key == "Escape":
            self.input_text = str(self.local_value)
            self.is_editing = False

    # ---- upstream ----
    def sync(self, value: int) -> None:
        """New committed value from upstream (e.g. after a refetch)."""
        self.committed_value = value
        if not self.has_pending and not self.is_editing:
            self.local_value = value
            self.input_text = str(value)

    def close(self) -> None:
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.pending_value = None

    async def flush(self) -> None:
        """Wait for the commit currently in flight, if any."""
        if self._inflight is not None:
            await asyncio.gather(self._inflight, return_exceptions=True)

    # ---- internals ----
    def _set_local(self, value: int) -> None:
        self.local_value = value
        self.input_text = str(value)
        self._schedule(value)

    def _schedule(self, value: int) -> None:
        if self._closed:
            return
        self.pending_value = value
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_ms / 1000, self._fire)

    def _fire(self) -> None:
        self._timer = None
        value = self.pending_value
        self.pending_value = None
        if value is None or self._closed:
            return
        self._inflight = asyncio.get_running_loop().create_task(self._commit(value, self._generation))

    async def _commit(self, value: int, generation: int) -> None:
        # One commit at a time per field; only the newest scheduled value may touch the display
        async with self._commit_lock:
            try:
                result = self.on_change(value)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("Quantity commit of %s failed: %s", value, e)
                self.last_error = e
                if generation == self._generation:
                    self._show(self.committed_value)
                return
            self.last_error = None
            self.committed_value = value
            if generation == self._generation:
                self._show(value)

    def _show(self, value: int) -> None:
        self.local_value = value
        if not self.is_editing:
            self.input_text = str(value)
