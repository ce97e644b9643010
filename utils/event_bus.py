"""Very small event bus for resolver notifications."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any

from utils.log_utils import tprint

Handler = Callable[[dict[str, Any]], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._subscribers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        handlers = self._subscribers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, topic: str, payload: dict[str, Any] | None = None) -> None:
        # Subscriber failures must not interrupt a resolution pass.
        for handler in list(self._subscribers.get(topic, [])):
            try:
                handler(payload or {})
            except Exception as exc:
                tprint(f"[EVENT_BUS][ERROR] Handler for {topic!r} failed: {exc!r}")
