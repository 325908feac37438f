"""Topic multicast channel for websocket subscribers.

The channel is one broadcaster connection shared by every websocket
subscriber. It joins the broadcaster when its first subscriber arrives and
leaves when the last one goes, so an idle channel is never counted as a
live connection. Each event is mapped onto a destination:

    batch-data          -> /topic/page-samples/batch
    single-data         -> /topic/page-samples
    status, connected   -> /topic/status

Every subscriber receives every destination. A subscriber that falls too
far behind is dropped from the channel.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
import uuid
from typing import TYPE_CHECKING, Any

from telemetry_replay.core.events.events import (
    BATCH_DATA,
    CONNECTED,
    SINGLE_DATA,
    STATUS,
    OutboundEvent,
    now_ms,
)
from telemetry_replay.core.ports.connection import SendResult

if TYPE_CHECKING:
    from telemetry_replay.core.events.broadcaster import Broadcaster

LOGGER = logging.getLogger(__name__)

TOPIC_BATCH = "/topic/page-samples/batch"
TOPIC_SINGLE = "/topic/page-samples"
TOPIC_STATUS = "/topic/status"
TOPIC_PONG = "/topic/pong"
APP_PING = "/app/ping"

DESTINATIONS: dict[str, str] = {
    BATCH_DATA: TOPIC_BATCH,
    SINGLE_DATA: TOPIC_SINGLE,
    STATUS: TOPIC_STATUS,
    CONNECTED: TOPIC_STATUS,
}


def encode_message(destination: str, event: str, payload: str) -> str:
    # payload is already JSON text; embed it without re-encoding.
    head = json.dumps({"destination": destination, "event": event}, ensure_ascii=False)
    return f'{head[:-1]},"payload":{payload}}}'


class TopicSubscriber:
    """One websocket client attached to the channel."""

    def __init__(self, *, max_pending: int) -> None:
        self.subscriber_id = str(uuid.uuid4())
        self._queue: queue.Queue[str] = queue.Queue(maxsize=max_pending)
        self.active = True

    def offer(self, message: str) -> bool:
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            return False
        return True

    def next_message(self, timeout: float) -> str | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


class TopicChannel:
    def __init__(self, *, broadcaster: Broadcaster, max_pending_per_subscriber: int = 1000) -> None:
        self._broadcaster = broadcaster
        self._max_pending = max_pending_per_subscriber
        self._subscribers: dict[str, TopicSubscriber] = {}
        self._lock = threading.Lock()
        # Serializes membership changes with joining / leaving the broadcaster.
        # Reentrant because joining sends the welcome back through send().
        self._membership = threading.RLock()
        self._registered = False

    @property
    def connection_id(self) -> str:
        return "topic"

    @property
    def registered(self) -> bool:
        return self._registered

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> TopicSubscriber:
        subscriber = TopicSubscriber(max_pending=self._max_pending)
        subscriber.offer(
            encode_message(
                TOPIC_STATUS,
                STATUS,
                json.dumps(
                    {"status": "connected", "message": "Topic subscription active", "timestamp": now_ms()}
                ),
            )
        )
        with self._membership:
            # Join before adding, so the broadcaster welcome is not fanned out
            # to the new subscriber on top of its subscription reply.
            if not self._registered:
                self._registered = self._broadcaster.register(self)
                if not self._registered:
                    LOGGER.error("Topic channel could not join the broadcaster")
            with self._lock:
                self._subscribers[subscriber.subscriber_id] = subscriber
                count = len(self._subscribers)
        LOGGER.info(
            "Topic subscriber added",
            extra={"subscriber_id": subscriber.subscriber_id, "subscribers": count},
        )
        return subscriber

    def unsubscribe(self, subscriber: TopicSubscriber) -> None:
        with self._membership:
            with self._lock:
                removed = self._subscribers.pop(subscriber.subscriber_id, None)
                count = len(self._subscribers)
            subscriber.active = False
            if count == 0:
                self._leave()
        if removed is not None:
            LOGGER.info(
                "Topic subscriber removed",
                extra={"subscriber_id": subscriber.subscriber_id, "subscribers": count},
            )

    def send(self, event: OutboundEvent) -> SendResult:
        destination = DESTINATIONS.get(event.name)
        if destination is None:
            return SendResult.unexpected(f"no destination for event {event.name!r}")
        self._fan_out(encode_message(destination, event.name, event.data))
        return SendResult.delivered()

    def publish_raw(self, destination: str, payload: Any) -> None:
        """Publish an application message that does not come from the broadcaster."""
        self._fan_out(
            encode_message(destination, "message", json.dumps(payload, ensure_ascii=False))
        )

    def close(self) -> None:
        """Drop every subscriber. Called by the broadcaster when it lets go of the channel."""
        with self._membership:
            with self._lock:
                for subscriber in self._subscribers.values():
                    subscriber.active = False
                self._subscribers.clear()
            self._registered = False

    def _leave(self) -> None:
        # Caller holds self._membership.
        if self._registered:
            self._broadcaster.unregister(self)
            self._registered = False

    def _fan_out(self, message: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers.values())

        lagging = [subscriber for subscriber in subscribers if not subscriber.offer(message)]
        if not lagging:
            return

        with self._membership:
            with self._lock:
                for subscriber in lagging:
                    self._subscribers.pop(subscriber.subscriber_id, None)
                    subscriber.active = False
                count = len(self._subscribers)
            if count == 0:
                self._leave()
        LOGGER.warning("Lagging topic subscribers dropped", extra={"dropped": len(lagging)})
