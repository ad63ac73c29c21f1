"""
Subscriber Registry

Tracks connected push-channel consumers and fans each broadcast out to all
of them. Subscribers are held by integer id; the registry never hands out
references into its own table.

Delivery is best-effort:
- a new subscriber first receives the latest snapshot (catch-up)
- a send failure or timeout removes only that subscriber
- a transport that has already closed is skipped

Every subscriber sends on its own single worker, so a send stuck on one
transport never holds up delivery to the others. Transports of evicted
subscribers are closed on a separate pool, off the broadcasting thread.
"""

import itertools
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Dict, Optional

from telemetry_service.config import config
from telemetry_service.errors import DeliveryFailure
from telemetry_service.logging_config import get_logger
from telemetry_service.snapshot import LatestSnapshot

logger = get_logger(__name__)


class Subscriber:
    """Transport handle plus the id the registry knows it by."""

    def __init__(self, subscriber_id: int, transport: Any):
        self.id = subscriber_id
        self.transport = transport
        self._sender = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"subscriber-{subscriber_id}")

    @property
    def is_open(self) -> bool:
        return bool(getattr(self.transport, "connected", True))

    def send(self, payload: str) -> None:
        try:
            self.transport.send(payload)
        except Exception as e:
            raise DeliveryFailure(f"Send to subscriber {self.id} failed: {e}")

    def submit(self, payload: str) -> Future:
        """Queue a send on this subscriber's own worker."""
        return self._sender.submit(self.send, payload)

    def release(self) -> None:
        self._sender.shutdown(wait=False)

    def close(self) -> None:
        try:
            self.transport.close()
        except Exception as e:
            logger.debug("subscriber_close_failed", subscriber=self.id, error=str(e))


class SubscriberRegistry:
    """Thread-safe set of subscribers with parallel, time-bounded fan-out."""

    def __init__(self, latest: LatestSnapshot, send_timeout: float = config.SEND_TIMEOUT_SECONDS,
                 max_workers: int = 16):
        self.latest = latest
        self.send_timeout = send_timeout
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Subscriber] = {}
        self._ids = itertools.count(1)
        self._closer = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="subscriber-close")

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def on_connect(self, transport: Any) -> Optional[int]:
        """
        Register a new consumer.

        The latest snapshot, if any, is sent before registration so the
        catch-up message always precedes the first regular broadcast.

        Returns:
            The subscriber id, or None if the catch-up send failed
        """
        subscriber = Subscriber(next(self._ids), transport)

        snapshot = self.latest.get()
        if snapshot is not None:
            try:
                subscriber.send(snapshot.to_json())
            except DeliveryFailure as e:
                logger.warning("catch_up_failed", subscriber=subscriber.id, error=str(e))
                subscriber.release()
                subscriber.close()
                return None

        with self._lock:
            self._subscribers[subscriber.id] = subscriber

        logger.info("subscriber_connected", subscriber=subscriber.id, caught_up=snapshot is not None)
        return subscriber.id

    def on_disconnect(self, subscriber_id: int) -> None:
        with self._lock:
            removed = self._subscribers.pop(subscriber_id, None)
        if removed is not None:
            removed.release()
            logger.info("subscriber_disconnected", subscriber=subscriber_id)

    def broadcast(self, payload: str) -> int:
        """
        Send payload to every registered, open subscriber.

        Returns:
            Number of subscribers the payload was delivered to
        """
        with self._lock:
            subscribers = list(self._subscribers.values())

        pending = {}
        for subscriber in subscribers:
            if not subscriber.is_open:
                self._remove(subscriber, reason="closed")
                continue
            try:
                pending[subscriber.submit(payload)] = subscriber
            except RuntimeError:
                # released by a concurrent disconnect
                continue

        if not pending:
            return 0

        done, not_done = wait(pending, timeout=self.send_timeout)

        delivered = 0
        for future in done:
            subscriber = pending[future]
            try:
                future.result()
                delivered += 1
            except DeliveryFailure as e:
                logger.warning("delivery_failed", subscriber=subscriber.id, error=str(e))
                self._evict(subscriber, reason="send_failed")

        for future in not_done:
            subscriber = pending[future]
            logger.warning("delivery_timed_out", subscriber=subscriber.id, timeout=self.send_timeout)
            self._evict(subscriber, reason="timeout")

        return delivered

    def close(self) -> None:
        with self._lock:
            subscribers = list(self._subscribers.values())
        for subscriber in subscribers:
            subscriber.release()
        self._closer.shutdown(wait=False)

    def _remove(self, subscriber: Subscriber, reason: str) -> None:
        with self._lock:
            self._subscribers.pop(subscriber.id, None)
        subscriber.release()
        logger.debug("subscriber_removed", subscriber=subscriber.id, reason=reason)

    def _evict(self, subscriber: Subscriber, reason: str) -> None:
        self._remove(subscriber, reason)
        try:
            self._closer.submit(subscriber.close)
        except RuntimeError:
            logger.debug("subscriber_close_skipped", subscriber=subscriber.id, reason="registry_closed")
