"""Settings: one immutable configuration value, built once at startup.

Everything that used to be an ambient lookup (storage location, table and
queue names, retry and poll knobs) lives here and is handed to component
constructors by the composition root.  A missing connection endpoint is a
startup failure, never a per-request one.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from orderflow.application.await_order import PollPolicy

QUEUE_BACKENDS = ("memory", "rabbitmq")
LOG_FORMATS = ("console", "json")


class ConfigurationError(Exception):
    """The process cannot start with the configuration it was given."""


@dataclass(frozen=True)
class Settings:

    storage_connection: Path
    table_order: str = "Order"
    table_product: str = "Product"
    table_customer: str = "Customer"
    table_outbox: str = "Outbox"
    queue_order_notifications: str = "order-notifications"
    queue_stock_updates: str = "stock-updates"
    queue_backend: str = "memory"
    queue_connection: str | None = None
    max_delivery_count: int = 5
    stock_max_attempts: int = 3
    poll_max_attempts: int = 20
    poll_delay_ms: int = 500
    worker_concurrency: int = 4
    low_stock_threshold: int = 0
    log_level: str = "INFO"
    log_format: str = "console"

    def __post_init__(self) -> None:
        if self.queue_backend not in QUEUE_BACKENDS:
            raise ConfigurationError(
                f"QUEUE_BACKEND must be one of {', '.join(QUEUE_BACKENDS)}, "
                f"got '{self.queue_backend}'"
            )
        if self.queue_backend == "rabbitmq" and not self.queue_connection:
            raise ConfigurationError("QUEUE_CONNECTION missing")
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got '{self.log_format}'"
            )
        for name in ("max_delivery_count", "stock_max_attempts", "poll_max_attempts", "worker_concurrency"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name.upper()} must be at least 1")
        if self.poll_delay_ms < 0:
            raise ConfigurationError("POLL_DELAY_MS cannot be negative")

    @property
    def poll_policy(self) -> PollPolicy:
        return PollPolicy(
            max_attempts=self.poll_max_attempts,
            delay_seconds=self.poll_delay_ms / 1000,
        )

    def table_path(self, table: str) -> Path:
        return self.storage_connection / f"{table}.json"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Raises ConfigurationError if STORAGE_CONNECTION is missing or any
        value cannot be parsed.
        """
        env = os.environ if environ is None else environ

        storage = env.get("STORAGE_CONNECTION", "").strip()
        if not storage:
            raise ConfigurationError("STORAGE_CONNECTION missing")

        return cls(
            storage_connection=Path(storage),
            table_order=env.get("TABLE_ORDER", "Order"),
            table_product=env.get("TABLE_PRODUCT", "Product"),
            table_customer=env.get("TABLE_CUSTOMER", "Customer"),
            table_outbox=env.get("TABLE_OUTBOX", "Outbox"),
            queue_order_notifications=env.get("QUEUE_ORDER_NOTIFICATIONS", "order-notifications"),
            queue_stock_updates=env.get("QUEUE_STOCK_UPDATES", "stock-updates"),
            queue_backend=env.get("QUEUE_BACKEND", "memory").strip().lower(),
            queue_connection=env.get("QUEUE_CONNECTION") or None,
            max_delivery_count=_int(env, "QUEUE_MAX_DELIVERY_COUNT", 5),
            stock_max_attempts=_int(env, "STOCK_MAX_ATTEMPTS", 3),
            poll_max_attempts=_int(env, "POLL_MAX_ATTEMPTS", 20),
            poll_delay_ms=_int(env, "POLL_DELAY_MS", 500),
            worker_concurrency=_int(env, "WORKER_CONCURRENCY", 4),
            low_stock_threshold=_int(env, "LOW_STOCK_THRESHOLD", 0),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_format=env.get("LOG_FORMAT", "console").strip().lower(),
        )


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got '{raw}'") from exc
