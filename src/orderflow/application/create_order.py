"""Application service: Create Order use case (order intake).

The intake service never writes an Order.  It validates the request,
withdraws stock through the Stock Ledger, and hands two messages to the
dispatcher: an ``OrderCreated`` snapshot for the materializer and a
``StockUpdated`` notification.  The summary it returns describes an
order that is *accepted* but not yet *durable*; its id is the id the
materializer will store the order under.

Stock withdrawal and the outbox write are two separate writes.  If the
outbox write fails after stock was withdrawn the stock stays reduced
with no order to show for it; that case is logged loudly so it can be
reconciled by hand, and the error propagates to the caller.  Once the
messages are recorded the order is accepted whatever happens while
publishing them, since the relay will deliver them.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from uuid import uuid4

import structlog

from orderflow.application.dispatch_messages import (
    MessageDispatcher,
    OutgoingMessage,
    utc_now,
)
from orderflow.application.dto import OrderDTO
from orderflow.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    ValidationError,
)
from orderflow.domain.messages import OrderCreatedMessage, StockUpdatedMessage
from orderflow.domain.model.order import OrderStatus
from orderflow.domain.repository.customer_repository import CustomerRepository
from orderflow.domain.repository.product_repository import ProductRepository
from orderflow.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)

STOCK_UPDATED_BY = "Order System"


def new_order_id() -> str:
    return uuid4().hex


class CreateOrderHandler:

    def __init__(
        self,
        customer_repo: CustomerRepository,
        product_repo: ProductRepository,
        stock_ledger: StockLedger,
        dispatcher: MessageDispatcher,
        order_queue: str,
        stock_queue: str,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_order_id,
    ) -> None:
        self._customer_repo = customer_repo
        self._product_repo = product_repo
        self._stock_ledger = stock_ledger
        self._dispatcher = dispatcher
        self._order_queue = order_queue
        self._stock_queue = stock_queue
        self._clock = clock
        self._id_factory = id_factory

    def handle(self, customer_id: str, product_id: str, quantity: int) -> OrderDTO:
        """Accept a new order.

        Steps:
        1. Validate the request and resolve product and customer.
        2. Reject early if stock is visibly insufficient.
        3. Withdraw stock (conditional write, retried on conflict).
        4. Snapshot the order and dispatch OrderCreated + StockUpdated.
        5. Return the accepted summary.

        Nothing is dispatched unless step 3 succeeded.
        """
        if (
            not customer_id
            or not customer_id.strip()
            or not product_id
            or not product_id.strip()
            or isinstance(quantity, bool)
            or not isinstance(quantity, int)
            or quantity < 1
        ):
            raise ValidationError("CustomerId, ProductId, Quantity >= 1 required")

        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise ValidationError("Invalid ProductId")

        customer = self._customer_repo.get_by_id(customer_id)
        if customer is None:
            raise ValidationError("Invalid CustomerId")

        if not product.has_stock_for(quantity):
            raise InsufficientStockError(
                product_id=product.id,
                requested=quantity,
                available=product.stock_available,
            )

        try:
            change = self._stock_ledger.decrement(product_id, quantity)
        except EntityNotFoundError as exc:
            # Product vanished between the lookup and the withdrawal.
            raise ValidationError("Invalid ProductId") from exc
        product = change.product

        order_id = self._id_factory()
        order_date = self._clock()
        unit_price = product.price
        total = unit_price * quantity
        status = OrderStatus.SUBMITTED.value

        order_message = OrderCreatedMessage(
            order_id=order_id,
            customer_id=customer_id,
            customer_name=customer.full_name,
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=unit_price.amount,
            total_amount=total.amount,
            order_date_utc=order_date,
            status=status,
        )
        stock_message = StockUpdatedMessage(
            product_id=product.id,
            product_name=product.name,
            previous_stock=change.previous_stock,
            new_stock=change.new_stock,
            updated_date_utc=self._clock(),
            updated_by=STOCK_UPDATED_BY,
        )

        try:
            entries = self._dispatcher.record([
                OutgoingMessage(self._order_queue, order_message),
                OutgoingMessage(self._stock_queue, stock_message),
            ])
        except Exception:
            logger.error(
                "Stock withdrawn but order messages were not recorded",
                order_id=order_id,
                product_id=product.id,
                quantity=quantity,
                previous_stock=change.previous_stock,
                new_stock=change.new_stock,
                exc_info=True,
            )
            raise

        # The entries are durable from here on; the relay owns delivery.
        try:
            published = self._dispatcher.publish(entries)
        except Exception:
            logger.error(
                "Order messages recorded but not published; left for the outbox relay",
                order_id=order_id,
                product_id=product.id,
                exc_info=True,
            )
            published = 0

        logger.info(
            "Order accepted",
            order_id=order_id,
            customer_id=customer_id,
            product_id=product.id,
            quantity=quantity,
            total_amount=str(total),
            published=published,
        )

        return OrderDTO(
            id=order_id,
            customer_id=customer_id,
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=unit_price.amount,
            total_amount=total.amount,
            order_date_utc=order_date,
            status=status,
        )
