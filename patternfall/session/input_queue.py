"""
Intent Queue - Buffered directional input.

Input devices (keyboard, gamepad, touch joystick, API clients) push
directions; the game loop consumes at most one per tick, and only while
the player is idle. At most `max_pending` intents are buffered; pushes
beyond that are dropped.
"""

from __future__ import annotations
from collections import deque

from ..engine_core.config import DEFAULT_CONFIG
from ..engine_core.player import Direction


class IntentQueue:
    """FIFO of pending directional intents."""

    def __init__(self, max_pending: int = DEFAULT_CONFIG.max_pending_intents):
        self.max_pending = max_pending
        self._queue: deque[Direction] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def push(self, direction: Direction | str) -> bool:
        """
        Queue an intent.

        Returns False if the queue is full and the intent was dropped.
        Raises ValueError for an unknown direction.
        """
        intent = Direction(direction)
        if len(self._queue) >= self.max_pending:
            return False
        self._queue.append(intent)
        return True

    def consume(self) -> Direction | None:
        """Pop the oldest intent, None if empty."""
        if not self._queue:
            return None
        return self._queue.popleft()

    def flush(self):
        self._queue.clear()

    def pending(self) -> list[Direction]:
        return list(self._queue)
