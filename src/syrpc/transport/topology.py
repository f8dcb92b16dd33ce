"""RabbitMQ topology shared by clients and servers.

A :class:`Topology` owns the broker connection, the request and result
channels, and the lazily declared result queues. Declarations are
idempotent on the broker side, so any number of clients and servers may
provision the same topology concurrently.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

import pika
import pika.exceptions

from ..config import Settings
from ..protocol import fields
from .base import PublishError, TransportConnectionError, TransportError


logger = logging.getLogger(__name__)


class Topology:
    """Broker resources for one application, as named by *settings*.

    *connection_factory* receives the :class:`pika.ConnectionParameters`
    and returns an open blocking connection; it defaults to
    :class:`pika.BlockingConnection`.
    """

    def __init__(
        self,
        settings: Settings,
        connection_factory: Optional[Callable] = None,
    ):
        self.settings = settings

        if connection_factory is None:
            connection_factory = pika.BlockingConnection
        self._connection_factory = connection_factory

        self.connection = None
        self.request_channel = None
        self.result_channel = None

        self.request_exchange: Optional[str] = None
        self.request_queue: Optional[str] = None
        self.request_routing_key: Optional[str] = None
        self.result_exchange: Optional[str] = None

        self._result_queues: List[Optional[str]] = [None] * settings.amq_num_queues

    def __enter__(self) -> "Topology":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self.connection is not None and self.connection.is_open

    def parameters(self) -> pika.ConnectionParameters:
        settings = self.settings
        credentials = pika.PlainCredentials(settings.amq_user, settings.amq_password)
        return pika.ConnectionParameters(
            host=settings.amq_host,
            port=settings.amq_port,
            virtual_host=settings.amq_virtualhost,
            credentials=credentials,
            heartbeat=settings.amq_heartbeat,
            blocked_connection_timeout=settings.amq_blocked_timeout,
        )

    def connect(self) -> None:
        """Open the broker connection. Failure is not retried here; the
        caller decides whether to try again."""
        settings = self.settings
        logger.debug("Initializing connection to AMQ at %s:%d%s",
                     settings.amq_host, settings.amq_port, settings.amq_virtualhost)
        try:
            self.connection = self._connection_factory(self.parameters())
        except (pika.exceptions.AMQPError, OSError) as e:
            logger.critical("Could not connect to AMQ: %s", e)
            raise TransportConnectionError(
                f"cannot connect to AMQP broker at "
                f"{settings.amq_host}:{settings.amq_port}: {e!r}"
            ) from e
        logger.debug("Successfully connected to AMQ")

    def declare(self) -> None:
        """Connect, if necessary, and provision the request and result
        exchanges. Result queues are declared on demand by
        :func:`result_queue`."""
        if self.connection is None:
            self.connect()
        self.ensure_request_topology()
        self.ensure_result_topology()

    def ensure_request_topology(self) -> None:
        """One direct exchange and one queue, bound by a routing key equal
        to the exchange name; all three share the same name."""
        logger.debug("Setting up request queue")
        name = self.settings.request_name

        with translated("declaring request topology"):
            if self.request_channel is None:
                self.request_channel = self.connection.channel()
                self.request_channel.confirm_delivery()

            channel = self.request_channel
            channel.exchange_declare(
                exchange=name,
                exchange_type=fields.REQUEST_EXCHANGE_TYPE,
                durable=True,
                auto_delete=False,
            )
            result = channel.queue_declare(queue=name, durable=True)
            queue = result.method.queue
            channel.queue_bind(queue=queue, exchange=name, routing_key=name)

        self.request_exchange = name
        self.request_queue = queue
        self.request_routing_key = name
        logger.debug("Finished setting up request queue %s", queue)

    def ensure_result_topology(self) -> None:
        logger.debug("Setting up result exchange for %d result queues",
                     self.settings.amq_num_queues)
        name = self.settings.result_exchange

        with translated("declaring result topology"):
            if self.result_channel is None:
                self.result_channel = self.connection.channel()
                self.result_channel.confirm_delivery()

            self.result_channel.exchange_declare(
                exchange=name,
                exchange_type=fields.RESULT_EXCHANGE_TYPE,
                durable=True,
                auto_delete=False,
            )

        self.result_exchange = name
        logger.debug("Finished setting up result exchange %s", name)

    def result_queue(self, index: int) -> str:
        """Return the name of the result queue for shard *index*, declaring
        it and binding it to the result exchange on first use. Later calls
        for the same index return the cached name without touching the
        broker."""
        if index < 0 or index >= len(self._result_queues):
            raise IndexError(
                f"shard index {index} outside [0, {len(self._result_queues)})"
            )

        queue = self._result_queues[index]
        if queue is not None:
            logger.debug("Already had queue for index %d", index)
            return queue

        settings = self.settings
        name = settings.result_queue_name(index)
        logger.debug("Setting up queue %s for index %d", name, index)

        arguments = {
            fields.QUEUE_EXPIRES: int(settings.amq_ttl * 1000),
            fields.MESSAGE_TTL: int(settings.amq_msg_ttl * 1000),
        }

        with translated(f"declaring result queue {name}"):
            result = self.result_channel.queue_declare(
                queue=name, durable=True, arguments=arguments
            )
            queue = result.method.queue
            self.result_channel.queue_bind(
                queue=queue,
                exchange=self.result_exchange,
                routing_key=str(index),
            )

        self._result_queues[index] = queue
        return queue

    def publish(self, channel, exchange: str, routing_key: str, body: bytes, correlation_id: str) -> None:
        """Publish *body* as a persistent JSON message. With publisher
        confirms enabled on the channel this returns once the broker has
        accepted the message."""
        properties = pika.BasicProperties(
            content_type=fields.CONTENT_TYPE,
            content_encoding=self.settings.msg_encoding,
            delivery_mode=fields.DELIVERY_MODE,
            correlation_id=correlation_id,
        )
        try:
            channel.basic_publish(
                exchange=exchange,
                routing_key=routing_key,
                body=body,
                properties=properties,
                mandatory=True,
            )
        except pika.exceptions.AMQPConnectionError as e:
            raise TransportConnectionError(f"connection lost while publishing: {e!r}") from e
        except pika.exceptions.AMQPError as e:
            raise PublishError(
                f"publish to {exchange!r} with key {routing_key!r} failed: {e!r}"
            ) from e

    def wait(self, time_limit: Optional[float]) -> None:
        """Block for up to *time_limit* seconds, dispatching any deliveries
        to their consumer callbacks. None blocks until something happens."""
        with translated("waiting for deliveries"):
            self.connection.process_data_events(time_limit=time_limit)

    def close(self) -> None:
        """Close the channels, then the connection. Every step is attempted
        even if an earlier one fails; calling this again is a no-op."""
        if self.connection is None:
            return

        connection = self.connection
        channels = (self.request_channel, self.result_channel)

        self.connection = None
        self.request_channel = None
        self.result_channel = None
        self._result_queues = [None] * len(self._result_queues)

        try:
            for channel in channels:
                if channel is None:
                    continue
                try:
                    if channel.is_open:
                        channel.close()
                except pika.exceptions.AMQPError as e:
                    logger.warning("Error closing channel: %s", e)
        finally:
            try:
                if connection.is_open:
                    connection.close()
            except pika.exceptions.AMQPError as e:
                logger.warning("Error closing connection: %s", e)

        logger.debug("Closed connection to AMQ")


class translated:
    """Context manager mapping pika exceptions onto the syrpc hierarchy."""

    def __init__(self, doing: str):
        self.doing = doing

    def __enter__(self) -> None:
        return None

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            return False
        if isinstance(exc, pika.exceptions.AMQPConnectionError):
            raise TransportConnectionError(f"connection lost while {self.doing}: {exc!r}") from exc
        if isinstance(exc, pika.exceptions.AMQPError):
            raise TransportError(f"broker error while {self.doing}: {exc!r}") from exc
        return False
