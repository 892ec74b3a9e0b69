"""CLI commands that run the long-lived processes.

``serve`` runs the Orders API together with the outbox relay, which owns
the redelivery of whatever the API could not publish.  In ``memory`` mode
the queues only exist inside that process, so it also runs the
consumers.  ``worker`` runs the consumers on their own against RabbitMQ.
"""

from __future__ import annotations

import threading

import click
import structlog
import uvicorn

from orderflow.infrastructure.api.app import create_app
from orderflow.infrastructure.bootstrap import outbox_repository
from orderflow.infrastructure.cli.common import load_services, load_settings
from orderflow.infrastructure.messaging.relay import OutboxRelay
from orderflow.infrastructure.messaging.worker import QueueWorkerPool

logger = structlog.get_logger(__name__)


def _block_until_interrupted() -> None:
    forever = threading.Event()
    try:
        while not forever.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to listen on.")
@click.option(
    "--workers/--no-workers",
    "run_workers",
    default=None,
    help="Run the queue consumers in this process (default: on in memory mode).",
)
@click.option("--relay-interval", default=5.0, show_default=True, type=float, help="Seconds between outbox relays.")
def serve(host: str, port: int, run_workers: bool | None, relay_interval: float) -> None:
    """Run the Orders API."""
    services = load_services()
    if run_workers is None:
        run_workers = services.settings.queue_backend == "memory"

    pools: list[QueueWorkerPool] = []
    if run_workers:
        pools = [services.order_workers(), services.stock_workers()]
        for pool in pools:
            pool.start()
    relay = OutboxRelay(services.dispatcher, interval=relay_interval)
    relay.start()

    logger.info(
        "Starting Orders API",
        host=host,
        port=port,
        queue_backend=services.settings.queue_backend,
        workers=run_workers,
    )
    try:
        uvicorn.run(create_app(services), host=host, port=port, log_config=None)
    finally:
        relay.stop()
        for pool in pools:
            pool.stop()


@click.command("worker")
@click.argument("which", type=click.Choice(["orders", "stock", "all"]), default="all")
def worker(which: str) -> None:
    """Consume the order and/or stock queues until interrupted."""
    services = load_services()
    if services.settings.queue_backend == "memory":
        raise click.ClickException(
            "In-memory queues live inside the API process; run 'orderflow serve' "
            "or set QUEUE_BACKEND=rabbitmq"
        )

    pools: list[QueueWorkerPool] = []
    if which in ("orders", "all"):
        pools.append(services.order_workers())
    if which in ("stock", "all"):
        pools.append(services.stock_workers())

    for pool in pools:
        pool.start()
    try:
        _block_until_interrupted()
    finally:
        for pool in pools:
            pool.stop()


@click.command("relay")
@click.option("--watch", is_flag=True, default=False, help="Keep relaying until interrupted.")
@click.option("--interval", default=5.0, show_default=True, type=float, help="Seconds between relays with --watch.")
def outbox_relay(watch: bool, interval: float) -> None:
    """Publish outbox entries that could not be sent when they were recorded."""
    services = load_services()
    relay = OutboxRelay(services.dispatcher, interval=interval)

    if not watch:
        click.echo(f"Relayed {relay.run_once()} outbox entries.")
        return

    relay.start()
    try:
        _block_until_interrupted()
    finally:
        relay.stop()


@click.command("pending")
def outbox_pending() -> None:
    """List outbox entries that have not been published yet."""
    entries = outbox_repository(load_settings()).list_pending()

    if not entries:
        click.echo("No pending outbox entries.")
        return

    click.echo(f"{'Entry':<36} {'Queue':<24} {'Attempts':>8}  Created (UTC)")
    click.echo("-" * 94)
    for entry in entries:
        click.echo(
            f"{entry.id:<36} {entry.queue:<24} {entry.attempts:>8}  {entry.created_at:%Y-%m-%d %H:%M:%S}"
        )
