"""Broker consumer feeding a local inbox.

The consumer callback never interprets a delivery; it only queues it. The
waiting code pulls deliveries out of the inbox one at a time and decides
whether to acknowledge or reject each, so all protocol decisions happen in
the caller's own control flow rather than inside a callback.
"""

from __future__ import annotations

import collections
import logging
import time
from typing import Deque, Optional

import pika.exceptions

from .base import TransportError
from .topology import translated


logger = logging.getLogger(__name__)


class Delivery:
    """One message as handed over by the broker."""

    __slots__ = ("tag", "properties", "body")

    def __init__(self, tag, properties, body: bytes):
        self.tag = tag
        self.properties = properties
        self.body = body

    @property
    def encoding(self) -> Optional[str]:
        return getattr(self.properties, "content_encoding", None)

    @property
    def correlation_id(self) -> Optional[str]:
        return getattr(self.properties, "correlation_id", None)


class Consumer:
    """Consume *queue* on *channel*, waiting via *topology*."""

    def __init__(self, topology, channel, queue: str):
        self.topology = topology
        self.channel = channel
        self.queue = queue
        self.tag: Optional[str] = None
        self.inbox: Deque[Delivery] = collections.deque()

    def __enter__(self) -> "Consumer":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()

    @property
    def active(self) -> bool:
        return self.tag is not None

    def start(self) -> None:
        if self.tag is not None:
            return
        with translated(f"consuming {self.queue}"):
            self.tag = self.channel.basic_consume(
                queue=self.queue,
                on_message_callback=self._on_message,
                auto_ack=False,
            )

    def next(self, deadline: Optional[float]) -> Optional[Delivery]:
        """Return the next delivery, waiting until the monotonic *deadline*
        at most. None as the deadline waits indefinitely. Pending broker
        events are always processed at least once, even for a deadline
        already in the past. Returns None if nothing arrived in time."""
        while True:
            if self.inbox:
                return self.inbox.popleft()

            if deadline is None:
                limit = None
            else:
                limit = max(0.0, deadline - time.monotonic())

            self.topology.wait(limit)

            if self.inbox:
                return self.inbox.popleft()

            if deadline is not None and time.monotonic() >= deadline:
                return None

    def ack(self, delivery: Delivery) -> None:
        with translated("acknowledging"):
            self.channel.basic_ack(delivery_tag=delivery.tag)

    def reject(self, delivery: Delivery, requeue: bool = True) -> None:
        with translated("rejecting"):
            self.channel.basic_reject(delivery_tag=delivery.tag, requeue=requeue)

    def cancel(self) -> None:
        """Stop consuming and hand back, requeued, anything still sitting
        in the inbox."""
        if self.tag is not None:
            tag = self.tag
            self.tag = None
            try:
                if self.channel.is_open:
                    self.channel.basic_cancel(tag)
            except pika.exceptions.AMQPError as e:
                logger.warning("Cannot cancel consumer %s: %s", tag, e)

        while self.inbox:
            delivery = self.inbox.popleft()
            try:
                self.reject(delivery, requeue=True)
            except TransportError as e:
                logger.warning("Cannot requeue delivery %s: %s", delivery.tag, e)

    def _on_message(self, _channel, method, properties, body: bytes) -> None:
        self.inbox.append(Delivery(method.delivery_tag, properties, body))

