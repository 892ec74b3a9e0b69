"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions and receives what it
needs through its constructor, starting from one Settings value.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.application.await_order import OrderVisibilityPoller
from orderflow.application.create_order import CreateOrderHandler
from orderflow.application.delete_order import DeleteOrderHandler
from orderflow.application.dispatch_messages import MessageDispatcher
from orderflow.application.materialize_order import OrderMaterializer
from orderflow.application.notify_stock import StockNotifier
from orderflow.application.show_order import ListOrdersHandler, ShowOrderHandler
from orderflow.application.update_order_status import UpdateOrderStatusHandler
from orderflow.domain.queue import MessageQueue
from orderflow.domain.repository.customer_repository import CustomerRepository
from orderflow.domain.repository.product_repository import ProductRepository
from orderflow.domain.service.stock_ledger import StockLedger
from orderflow.infrastructure.config import Settings
from orderflow.infrastructure.messaging.memory_queue import InMemoryQueue
from orderflow.infrastructure.messaging.worker import QueueWorkerPool
from orderflow.infrastructure.persistence.json_customer_repository import (
    JsonCustomerRepository,
)
from orderflow.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from orderflow.infrastructure.persistence.json_outbox_repository import (
    JsonOutboxRepository,
)
from orderflow.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)


@dataclass(frozen=True)
class Services:
    """Everything the HTTP surface, the CLI and the workers call into."""

    settings: Settings
    product_repo: ProductRepository
    customer_repo: CustomerRepository
    order_queue: MessageQueue
    stock_queue: MessageQueue
    dispatcher: MessageDispatcher
    create_order: CreateOrderHandler
    show_order: ShowOrderHandler
    list_orders: ListOrdersHandler
    update_order_status: UpdateOrderStatusHandler
    delete_order: DeleteOrderHandler
    materializer: OrderMaterializer
    stock_notifier: StockNotifier
    poller: OrderVisibilityPoller

    def order_workers(self) -> QueueWorkerPool:
        return QueueWorkerPool(
            self.order_queue,
            self.materializer.handle,
            concurrency=self.settings.worker_concurrency,
        )

    def stock_workers(self) -> QueueWorkerPool:
        return QueueWorkerPool(
            self.stock_queue,
            self.stock_notifier.handle,
            concurrency=self.settings.worker_concurrency,
        )


def product_repository(settings: Settings) -> JsonProductRepository:
    return JsonProductRepository(settings.table_path(settings.table_product))


def customer_repository(settings: Settings) -> JsonCustomerRepository:
    return JsonCustomerRepository(settings.table_path(settings.table_customer))


def order_repository(settings: Settings) -> JsonOrderRepository:
    return JsonOrderRepository(settings.table_path(settings.table_order))


def outbox_repository(settings: Settings) -> JsonOutboxRepository:
    return JsonOutboxRepository(settings.table_path(settings.table_outbox))


def message_queue(settings: Settings, name: str) -> MessageQueue:
    if settings.queue_backend == "rabbitmq":
        # Imported lazily so memory mode does not need a broker client configured.
        from orderflow.infrastructure.messaging.rabbitmq_queue import RabbitMQQueue

        return RabbitMQQueue(
            settings.queue_connection,  # type: ignore[arg-type]
            name,
            max_delivery_count=settings.max_delivery_count,
        )
    return InMemoryQueue(name, max_delivery_count=settings.max_delivery_count)


def build_services(settings: Settings) -> Services:
    product_repo = product_repository(settings)
    customer_repo = customer_repository(settings)
    order_repo = order_repository(settings)

    order_queue = message_queue(settings, settings.queue_order_notifications)
    stock_queue = message_queue(settings, settings.queue_stock_updates)
    dispatcher = MessageDispatcher(
        outbox_repository(settings),
        {order_queue.name: order_queue, stock_queue.name: stock_queue},
    )

    show_order = ShowOrderHandler(order_repo)

    return Services(
        settings=settings,
        product_repo=product_repo,
        customer_repo=customer_repo,
        order_queue=order_queue,
        stock_queue=stock_queue,
        dispatcher=dispatcher,
        create_order=CreateOrderHandler(
            customer_repo=customer_repo,
            product_repo=product_repo,
            stock_ledger=StockLedger(product_repo, max_attempts=settings.stock_max_attempts),
            dispatcher=dispatcher,
            order_queue=order_queue.name,
            stock_queue=stock_queue.name,
        ),
        show_order=show_order,
        list_orders=ListOrdersHandler(order_repo),
        update_order_status=UpdateOrderStatusHandler(
            order_repo=order_repo,
            dispatcher=dispatcher,
            order_queue=order_queue.name,
        ),
        delete_order=DeleteOrderHandler(order_repo),
        materializer=OrderMaterializer(order_repo),
        stock_notifier=StockNotifier(low_stock_threshold=settings.low_stock_threshold),
        poller=OrderVisibilityPoller(show_order.find, settings.poll_policy),
    )
