"""RabbitMQ implementation of MessageQueue (pika).

Each queue is a durable quorum queue.  Quorum queues count deliveries in
the ``x-delivery-count`` header and, with ``x-delivery-limit`` set,
dead-letter a message that keeps being returned; the dead-letter route
points at ``<queue>-poison``.  Quarantine is therefore done by the broker,
and ``abandon`` only has to hand the message back.

pika's BlockingConnection is not thread-safe, so every thread gets its
own connection and channel.  Consumers pull with ``basic_get`` so the
same worker pool drives this queue and the in-memory one.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from uuid import uuid4

import pika
import pika.exceptions
import structlog

from orderflow.domain.exceptions import TransientError
from orderflow.domain.queue import MessageQueue, QueueMessage

logger = structlog.get_logger(__name__)


class RabbitMQQueue(MessageQueue):

    def __init__(
        self,
        url: str,
        name: str,
        max_delivery_count: int = 5,
        connection_factory: Callable[[pika.connection.Parameters], pika.BlockingConnection] = pika.BlockingConnection,
    ) -> None:
        self._parameters = pika.URLParameters(url)
        self._name = name
        self._max_delivery_count = max_delivery_count
        self._connection_factory = connection_factory
        self._local = threading.local()

    @property
    def name(self) -> str:
        return self._name

    @property
    def poison_name(self) -> str:
        return f"{self._name}-poison"

    # --- MessageQueue interface -----------------------------------------------

    def send(self, body: str) -> None:
        channel = self._channel()
        try:
            channel.basic_publish(
                exchange="",
                routing_key=self._name,
                body=body.encode("utf-8"),
                properties=pika.BasicProperties(
                    message_id=uuid4().hex,
                    delivery_mode=2,  # persistent
                    content_type="application/json",
                ),
                mandatory=True,
            )
        except pika.exceptions.AMQPError as exc:
            self._reset()
            raise TransientError(f"Publish to '{self._name}' failed: {exc!r}") from exc

    def receive(self) -> QueueMessage | None:
        channel = self._channel()
        try:
            method, properties, body = channel.basic_get(queue=self._name, auto_ack=False)
        except pika.exceptions.AMQPError as exc:
            self._reset()
            raise TransientError(f"Receive from '{self._name}' failed: {exc!r}") from exc

        if method is None:
            return None

        headers = properties.headers or {}
        return QueueMessage(
            id=properties.message_id or str(method.delivery_tag),
            # Undecodable bytes become U+FFFD and are rejected as malformed downstream.
            body=body.decode("utf-8", errors="replace"),
            dequeue_count=int(headers.get("x-delivery-count", 0)) + 1,
            receipt=(channel, method.delivery_tag),
        )

    def complete(self, message: QueueMessage) -> None:
        channel, delivery_tag = message.receipt
        try:
            channel.basic_ack(delivery_tag=delivery_tag)
        except pika.exceptions.AMQPError as exc:
            self._reset()
            raise TransientError(f"Ack on '{self._name}' failed: {exc!r}") from exc

    def abandon(self, message: QueueMessage) -> None:
        channel, delivery_tag = message.receipt
        try:
            channel.basic_nack(delivery_tag=delivery_tag, requeue=True)
        except pika.exceptions.AMQPError as exc:
            self._reset()
            raise TransientError(f"Nack on '{self._name}' failed: {exc!r}") from exc

    def close(self) -> None:
        """Close the calling thread's connection, if any."""
        connection = getattr(self._local, "connection", None)
        self._local.connection = None
        self._local.channel = None
        if connection is not None and connection.is_open:
            connection.close()

    # --- Connection helpers ---------------------------------------------------

    def _channel(self):
        channel = getattr(self._local, "channel", None)
        if channel is not None and channel.is_open:
            return channel

        try:
            connection = self._connection_factory(self._parameters)
            channel = connection.channel()
            channel.confirm_delivery()
            self._declare(channel)
        except pika.exceptions.AMQPError as exc:
            raise TransientError(f"Cannot connect to RabbitMQ for '{self._name}': {exc!r}") from exc

        self._local.connection = connection
        self._local.channel = channel
        logger.info("Connected to RabbitMQ", queue=self._name)
        return channel

    def _declare(self, channel) -> None:
        channel.queue_declare(queue=self.poison_name, durable=True)
        channel.queue_declare(
            queue=self._name,
            durable=True,
            arguments={
                "x-queue-type": "quorum",
                # the broker dead-letters once failed deliveries exceed the limit
                "x-delivery-limit": self._max_delivery_count - 1,
                "x-dead-letter-exchange": "",
                "x-dead-letter-routing-key": self.poison_name,
            },
        )

    def _reset(self) -> None:
        try:
            self.close()
        except pika.exceptions.AMQPError:
            logger.debug("Ignoring error while closing a broken connection", queue=self._name)
