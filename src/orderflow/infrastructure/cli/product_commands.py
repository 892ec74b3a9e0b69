"""CLI commands for inspecting the product catalog.

The catalog is owned by another system; this only reads the storage
directory so operators can watch stock levels move as orders arrive.
"""

from __future__ import annotations

import click

from orderflow.infrastructure.bootstrap import product_repository
from orderflow.infrastructure.cli.common import load_settings


@click.command("list")
def product_list() -> None:
    """List all products in the catalog with their stock."""
    products = product_repository(load_settings()).list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<12} {'Name':<20} {'Price':>10} {'Stock':>7}")
    click.echo("-" * 52)
    for p in products:
        click.echo(f"{p.id:<12} {p.name:<20} {str(p.price):>10} {p.stock_available:>7}")
