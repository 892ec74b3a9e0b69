"""Queue worker pool.

Runs a message handler over a queue with N independent threads.  Each
worker takes one message at a time; when the handler returns the message
is completed, when it raises the message is abandoned so the queue can
redeliver it (and eventually quarantine it).  Handlers decide what is
worth a retry simply by raising or not.

Messages are processed in no particular order and handlers for
different messages run concurrently.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import structlog

from orderflow.domain.exceptions import TransientError
from orderflow.domain.queue import MessageQueue, QueueMessage

logger = structlog.get_logger(__name__)

MessageHandler = Callable[[str], object]


class QueueWorkerPool:

    def __init__(
        self,
        queue: MessageQueue,
        handler: MessageHandler,
        concurrency: int = 4,
        idle_wait: float = 0.5,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._queue = queue
        self._handler = handler
        self._concurrency = concurrency
        self._idle_wait = idle_wait
        self._stopping = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def queue(self) -> MessageQueue:
        return self._queue

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._threads = [
            threading.Thread(
                target=self._run,
                name=f"{self._queue.name}-worker-{i}",
                daemon=True,
            )
            for i in range(self._concurrency)
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Queue workers started", queue=self._queue.name, concurrency=self._concurrency)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stopping.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
        logger.info("Queue workers stopped", queue=self._queue.name)

    def process_next(self) -> bool:
        """Receive and process a single message. Returns False if the queue was empty."""
        message = self._queue.receive()
        if message is None:
            return False
        self._process(message)
        return True

    def drain(self) -> int:
        """Process messages on the calling thread until the queue is empty."""
        processed = 0
        while self.process_next():
            processed += 1
        return processed

    # --- Internal helpers -----------------------------------------------------

    def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                processed = self.process_next()
            except TransientError as exc:
                logger.warning("Queue unavailable", queue=self._queue.name, error=str(exc))
                processed = False
            if not processed:
                self._stopping.wait(self._idle_wait)

    def _process(self, message: QueueMessage) -> None:
        with structlog.contextvars.bound_contextvars(
            queue=self._queue.name,
            message_id=message.id,
            dequeue_count=message.dequeue_count,
        ):
            logger.debug("Processing message")
            try:
                self._handler(message.body)
            except Exception:
                logger.exception("Message handler failed; message will be redelivered")
                self._settle(self._queue.abandon, message)
                return
            self._settle(self._queue.complete, message)

    @staticmethod
    def _settle(action: Callable[[QueueMessage], None], message: QueueMessage) -> None:
        # An unsettled message is redelivered by the queue, which handlers tolerate.
        try:
            action(message)
        except TransientError as exc:
            logger.warning("Could not settle message", error=str(exc))
