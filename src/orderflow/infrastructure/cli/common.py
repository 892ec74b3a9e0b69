"""Helpers shared by the CLI command modules."""

from __future__ import annotations

import click

from orderflow.infrastructure.bootstrap import Services, build_services
from orderflow.infrastructure.client.orders_client import DEFAULT_API_URL, OrdersApiClient
from orderflow.infrastructure.config import ConfigurationError, Settings

api_url_option = click.option(
    "--api-url",
    envvar="ORDERS_API_URL",
    default=DEFAULT_API_URL,
    show_default=True,
    help="Base URL of the Orders API.",
)


def load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(f"Configuration error: {exc}")


def load_services() -> Services:
    return build_services(load_settings())


def api_client(api_url: str) -> OrdersApiClient:
    return OrdersApiClient(base_url=api_url)
