"""Bounded hand-off between the worker stdout reader and the consumer"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Union

from .protocol import TaskOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """Formatted progress or diagnostic line"""
    text: str


@dataclass(frozen=True)
class ErrorEvent:
    """Worker reported a fatal error"""
    message: str


@dataclass(frozen=True)
class ResultEvent:
    """Worker stdout reached EOF; output is the last Success seen, if any"""
    output: Optional[TaskOutput]


TaskEvent = Union[ProgressEvent, ErrorEvent, ResultEvent]


class ProgressChannel:
    """
    Thread-safe FIFO of TaskEvents with a progress budget.

    put() never blocks. When the buffer is full the oldest ProgressEvent is
    discarded to make room. ErrorEvent and ResultEvent are never discarded.
    """

    def __init__(self, capacity: int = 256):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.dropped = 0
        self._events: Deque[TaskEvent] = deque()
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return len(self._events)

    def put(self, event: TaskEvent) -> None:
        with self._cond:
            if len(self._events) >= self.capacity:
                self._drop_oldest_progress()
            self._events.append(event)
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> TaskEvent:
        """Block until an event is available.

        Raises:
            TimeoutError: nothing arrived within timeout seconds
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._events, timeout=timeout):
                raise TimeoutError("No worker event received")
            return self._events.popleft()

    def _drop_oldest_progress(self) -> None:
        for i, queued in enumerate(self._events):
            if isinstance(queued, ProgressEvent):
                del self._events[i]
                self.dropped += 1
                if self.dropped == 1 or self.dropped % 100 == 0:
                    logger.debug(f"Progress buffer full, {self.dropped} progress events dropped so far")
                return
