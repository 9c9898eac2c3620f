"""Human-readable status messages for blocked, locked and finished actions."""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Protocol

StatusListener = Callable[[str], None]


class StatusSink(Protocol):
    """Anything that can surface a status line to the player."""

    def say(self, text: str) -> None:
        """Publish one status message."""


class StatusChannel:
    """Keeps recent status lines and fans them out to subscribers."""

    def __init__(self, *, history: int = 200, logger: logging.Logger | None = None) -> None:
        self._messages: deque[str] = deque(maxlen=history)
        self._listeners: list[StatusListener] = []
        self._logger = logger or logging.getLogger("voxel_scout.status")

    def subscribe(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def say(self, text: str) -> None:
        self._messages.append(text)
        self._logger.info("status_message", extra={"text": text})
        for listener in list(self._listeners):
            listener(text)

    @property
    def messages(self) -> list[str]:
        return list(self._messages)
