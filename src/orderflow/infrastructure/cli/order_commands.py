"""CLI commands for orders.

These talk to a running Orders API over HTTP, so they work against any
deployment, not just the local storage directory.
"""

from __future__ import annotations

import click

from orderflow.application.await_order import OrderVisibilityPoller, PollPolicy, Visibility
from orderflow.application.dto import OrderDTO
from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.cli.common import api_client, api_url_option

CREATED_MESSAGE = "Order created successfully!"
SUBMITTED_MESSAGE = "Order submitted! It may take a moment to appear in the list."


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_id}")
    click.echo(f"Created:  {dto.order_date_utc.isoformat()}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    click.echo(
        f"  {dto.product_name:<20} {dto.quantity:>5} {dto.unit_price:>10.2f} {dto.total_amount:>10.2f}"
    )


@click.command("create")
@click.option("--customer", "customer_id", required=True, help="Customer ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units to order.")
@click.option("--wait/--no-wait", default=True, show_default=True, help="Wait until the order is readable.")
@click.option(
    "--attempts",
    envvar="POLL_MAX_ATTEMPTS",
    default=20,
    show_default=True,
    type=click.IntRange(min=1),
    help="Read attempts while waiting.",
)
@click.option(
    "--delay-ms",
    envvar="POLL_DELAY_MS",
    default=500,
    show_default=True,
    type=click.IntRange(min=0),
    help="Delay before each read attempt.",
)
@api_url_option
def order_create(
    customer_id: str,
    product_id: str,
    quantity: int,
    wait: bool,
    attempts: int,
    delay_ms: int,
    api_url: str,
) -> None:
    """Place an order, then wait for it to become readable."""
    client = api_client(api_url)

    try:
        dto = client.create_order(customer_id, product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)
    click.echo()

    if not wait:
        click.echo(SUBMITTED_MESSAGE)
        return

    poller = OrderVisibilityPoller(client.get_order)
    visibility = poller.await_visible(
        dto.id,
        policy=PollPolicy(max_attempts=attempts, delay_seconds=delay_ms / 1000),
    )
    click.echo(CREATED_MESSAGE if visibility is Visibility.VISIBLE else SUBMITTED_MESSAGE)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@api_url_option
def order_show(order_id: str, api_url: str) -> None:
    """Show details of an existing order."""
    try:
        dto = api_client(api_url).get_order(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if dto is None:
        raise click.ClickException(f"Order '{order_id}' not found")
    _display_order(dto)


@click.command("list")
@api_url_option
def order_list(api_url: str) -> None:
    """List orders, newest first."""
    try:
        orders = api_client(api_url).list_orders()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<34} {'Date (UTC)':<20} {'Product':<20} {'Qty':>5} {'Total':>10}  Status")
    click.echo("-" * 102)
    for dto in orders:
        click.echo(
            f"{dto.id:<34} {dto.order_date_utc:%Y-%m-%d %H:%M:%S}  {dto.product_name:<20} "
            f"{dto.quantity:>5} {dto.total_amount:>10.2f}  {dto.status}"
        )


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--status", "new_status", required=True, help="New status (e.g. Processing, Shipped).")
@api_url_option
def order_status(order_id: str, new_status: str, api_url: str) -> None:
    """Change an order's status."""
    try:
        dto = api_client(api_url).update_status(order_id, new_status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.id} status set to {dto.status}")


@click.command("delete")
@click.option("--id", "order_id", required=True, help="Order ID to delete.")
@api_url_option
def order_delete(order_id: str, api_url: str) -> None:
    """Delete an order."""
    try:
        api_client(api_url).delete_order(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {order_id} deleted.")
