"""Bounded hand-off channels between the poll loop and its consumer."""

import queue
import threading
import time
from typing import Any, Iterator, List, Optional

from .exceptions import ChannelClosedError

# How often blocked senders and receivers re-check for cancellation.
_CHECK_INTERVAL = 0.05


class Channel:
    """
    Thread-safe FIFO channel with an optional capacity.

    Features:
    - send() blocks while the channel is full, until a cancel event is set
    - receive() blocks until an item arrives, a timeout expires, or the
      channel is closed and drained
    - Items already queued stay readable after close()
    """

    def __init__(self, maxsize: int = 0, name: str = "channel"):
        """
        Initialize the channel.

        Args:
            maxsize: Capacity of the channel (0 = unbounded)
            name: Name used in error messages
        """
        self.maxsize = maxsize
        self.name = name
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    def send(self, item: Any, cancel: Optional[threading.Event] = None) -> bool:
        """
        Put an item on the channel, blocking while it is full.

        Args:
            item: Item to send
            cancel: Event that abandons a blocked send when set

        Returns:
            True if the item was queued, False if the send was cancelled

        Raises:
            ChannelClosedError: If the channel is closed
        """
        while True:
            if self._closed.is_set():
                raise ChannelClosedError(f"{self.name} channel is closed")
            if cancel is not None and cancel.is_set():
                return False
            try:
                self._queue.put(item, timeout=_CHECK_INTERVAL)
                return True
            except queue.Full:
                continue

    def receive(self, timeout: Optional[float] = None, default: Any = None) -> Any:
        """
        Take the next item from the channel.

        Args:
            timeout: Seconds to wait (None waits until an item or close)
            default: Value returned on timeout or when closed and drained

        Returns:
            The next item, or default
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            wait = _CHECK_INTERVAL
            if deadline is not None:
                wait = min(wait, max(deadline - time.monotonic(), 0.0))
            try:
                return self._queue.get(timeout=wait) if wait > 0 else self._queue.get_nowait()
            except queue.Empty:
                pass

            if self._closed.is_set() and self._queue.empty():
                return default
            if deadline is not None and time.monotonic() >= deadline:
                return default

    def drain(self, max_count: Optional[int] = None) -> List[Any]:
        """
        Take every queued item without blocking.

        Args:
            max_count: Maximum number of items to take

        Returns:
            Items in FIFO order
        """
        items = []
        while max_count is None or len(items) < max_count:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return items

    def size(self) -> int:
        """
        Get the number of queued items.

        Returns:
            Number of items waiting to be received
        """
        return self._queue.qsize()

    def close(self) -> None:
        """Close the channel. Further sends raise ChannelClosedError."""
        self._closed.set()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Any]:
        """Yield items until the channel is closed and drained."""
        sentinel = object()
        while True:
            item = self.receive(default=sentinel)
            if item is sentinel:
                return
            yield item
