import click

from orderflow.infrastructure.cli.order_commands import (
    order_create,
    order_delete,
    order_list,
    order_show,
    order_status,
)
from orderflow.infrastructure.cli.product_commands import product_list
from orderflow.infrastructure.cli.runtime_commands import (
    outbox_pending,
    outbox_relay,
    serve,
    worker,
)
from orderflow.infrastructure.config import LOG_FORMATS
from orderflow.infrastructure.logging import configure_logging


@click.group()
@click.option(
    "--log-level",
    envvar="LOG_LEVEL",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.option(
    "--log-format",
    envvar="LOG_FORMAT",
    default="console",
    show_default=True,
    type=click.Choice(LOG_FORMATS, case_sensitive=False),
)
def cli(log_level: str, log_format: str) -> None:
    """orderflow: order intake, materialization and stock notifications"""
    configure_logging(level=log_level.upper(), fmt=log_format.lower())


@cli.group()
def order() -> None:
    """Place and manage orders through the API."""


@cli.group()
def product() -> None:
    """Inspect the product catalog."""


@cli.group()
def outbox() -> None:
    """Inspect and relay the message outbox."""


# Register subcommands
order.add_command(order_create)
order.add_command(order_delete)
order.add_command(order_list)
order.add_command(order_show)
order.add_command(order_status)
product.add_command(product_list)
outbox.add_command(outbox_pending)
outbox.add_command(outbox_relay)
cli.add_command(serve)
cli.add_command(worker)
