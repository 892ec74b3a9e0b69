"""Convergence Poller: wait for an accepted order to become visible.

Order intake answers before the order is materialized.  A caller that
wants a synchronous-looking result polls the read side for a bounded
time.  Not seeing the order within that time is a *soft* outcome: the
order was accepted and is assumed to be queued, it just has not shown
up yet.  The poller therefore never raises.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from orderflow.application.dto import OrderDTO

logger = structlog.get_logger(__name__)


class Visibility(Enum):
    VISIBLE = "visible"
    NOT_YET_VISIBLE = "not_yet_visible"


@dataclass(frozen=True)
class PollPolicy:
    """How long to wait: ``max_attempts`` reads, ``delay_seconds`` before each."""

    max_attempts: int = 20
    delay_seconds: float = 0.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")

    @property
    def ceiling_seconds(self) -> float:
        return self.max_attempts * self.delay_seconds


OrderReader = Callable[[str], OrderDTO | None]


class OrderVisibilityPoller:

    def __init__(self, read_order: OrderReader, policy: PollPolicy | None = None) -> None:
        self._read_order = read_order
        self._policy = policy or PollPolicy()

    def await_visible(
        self,
        order_id: str,
        policy: PollPolicy | None = None,
        cancel: threading.Event | None = None,
    ) -> Visibility:
        """Poll until the order can be read or the policy is exhausted.

        Setting *cancel* ends the wait early with NOT_YET_VISIBLE.
        """
        policy = policy or self._policy
        waiter = cancel or threading.Event()

        for attempt in range(1, policy.max_attempts + 1):
            if waiter.wait(policy.delay_seconds):
                logger.info("Order visibility wait cancelled", order_id=order_id, attempt=attempt)
                return Visibility.NOT_YET_VISIBLE

            try:
                order = self._read_order(order_id)
            except Exception as exc:
                logger.debug(
                    "Order read failed; will retry",
                    order_id=order_id,
                    attempt=attempt,
                    error=str(exc),
                )
                continue

            if order is not None:
                logger.debug("Order visible", order_id=order_id, attempt=attempt)
                return Visibility.VISIBLE

        logger.info(
            "Order not visible yet",
            order_id=order_id,
            attempts=policy.max_attempts,
        )
        return Visibility.NOT_YET_VISIBLE
