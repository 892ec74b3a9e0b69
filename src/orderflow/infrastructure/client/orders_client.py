"""HTTP client for the Orders API (requests).

Used by the CLI.  Responses are turned back into OrderDTOs and error
statuses back into the domain exceptions the server raised, so callers
handle a remote API exactly like the in-process handlers.
"""

from __future__ import annotations

from typing import Any

import requests
import structlog

from orderflow.application.dto import OrderDTO
from orderflow.domain.exceptions import (
    ConflictError,
    DomainException,
    EntityNotFoundError,
    TransientError,
    ValidationError,
)
from orderflow.infrastructure.api.schemas import OrderResponse

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "http://localhost:8000"

_ERRORS: dict[int, type[DomainException]] = {
    400: ValidationError,
    404: EntityNotFoundError,
    409: ConflictError,
}


class OrdersApiClient:

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def create_order(self, customer_id: str, product_id: str, quantity: int) -> OrderDTO:
        payload = {"CustomerId": customer_id, "ProductId": product_id, "Quantity": quantity}
        return self._order(self._request("POST", "/orders", json=payload).json())

    def get_order(self, order_id: str) -> OrderDTO | None:
        """Fetch one order; None if the API answers 404."""
        try:
            response = self._request("GET", f"/orders/{order_id}")
        except EntityNotFoundError:
            return None
        return self._order(response.json())

    def list_orders(self) -> list[OrderDTO]:
        return [self._order(raw) for raw in self._request("GET", "/orders").json()]

    def update_status(self, order_id: str, status: str) -> OrderDTO:
        response = self._request("PATCH", f"/orders/{order_id}/status", json={"Status": status})
        return self._order(response.json())

    def delete_order(self, order_id: str) -> None:
        self._request("DELETE", f"/orders/{order_id}")

    # --- Internal helpers -----------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransientError(f"Cannot reach {url}: {exc}") from exc

        if response.status_code < 400:
            return response

        message = self._error_message(response)
        logger.debug("API error", method=method, url=url, status=response.status_code, error=message)
        if response.status_code >= 500:
            raise TransientError(f"{method} {url} failed with HTTP {response.status_code}: {message}")
        raise _ERRORS.get(response.status_code, DomainException)(message)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return response.text

    @staticmethod
    def _order(raw: dict[str, Any]) -> OrderDTO:
        return OrderResponse.model_validate(raw).to_dto()
