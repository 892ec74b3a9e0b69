"""Queue consumer: Stock Notifier.

Observability only.  Stock-change messages are logged, with a warning
once a product drops to the low-stock threshold.  Nothing is persisted,
and the handler never raises: a failure here must not cause redelivery.
"""

from __future__ import annotations

import structlog

from orderflow.domain.messages import StockUpdatedMessage, decode

logger = structlog.get_logger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 0


class StockNotifier:

    def __init__(self, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> None:
        self._low_stock_threshold = low_stock_threshold

    def handle(self, body: str) -> None:
        try:
            message = decode(body)
            if not isinstance(message, StockUpdatedMessage):
                logger.warning(
                    "Ignoring message not meant for the stock-updates queue",
                    message_type=type(message).TYPE,
                )
                return

            logger.info(
                f"Stock updated for product {message.product_name}: "
                f"{message.previous_stock} -> {message.new_stock}",
                product_id=message.product_id,
                previous_stock=message.previous_stock,
                new_stock=message.new_stock,
                updated_by=message.updated_by,
            )
            if message.new_stock <= self._low_stock_threshold:
                logger.warning(
                    "Low stock",
                    product_id=message.product_id,
                    product_name=message.product_name,
                    new_stock=message.new_stock,
                    threshold=self._low_stock_threshold,
                )
        except Exception:
            logger.exception("Error processing stock update")
