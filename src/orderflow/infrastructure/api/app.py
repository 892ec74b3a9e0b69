"""FastAPI application for the Orders API.

Routes are thin: they translate the wire schema into handler calls and
back.  Domain errors become HTTP responses in one place, the exception
handlers registered by ``create_app``, always with an ``{"error": ...}``
body.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orderflow.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    TransientError,
    ValidationError,
)
from orderflow.infrastructure.api.schemas import (
    CreateOrderRequest,
    HealthResponse,
    OrderResponse,
    UpdateStatusRequest,
)
from orderflow.infrastructure.bootstrap import Services

logger = structlog.get_logger(__name__)


def get_services(request: Request) -> Services:
    return request.app.state.services


# ---------------------------------------------------------------------------
# Orders Router
# ---------------------------------------------------------------------------
orders_router = APIRouter(prefix="/orders", tags=["orders"])


@orders_router.post("", status_code=201, response_model=OrderResponse)
def create_order(body: CreateOrderRequest, services: Services = Depends(get_services)) -> OrderResponse:
    dto = services.create_order.handle(
        customer_id=body.customer_id or "",
        product_id=body.product_id or "",
        quantity=body.quantity if body.quantity is not None else 0,
    )
    return OrderResponse.from_dto(dto)


@orders_router.get("", response_model=list[OrderResponse])
def list_orders(services: Services = Depends(get_services)) -> list[OrderResponse]:
    return [OrderResponse.from_dto(dto) for dto in services.list_orders.handle()]


@orders_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, services: Services = Depends(get_services)) -> OrderResponse:
    return OrderResponse.from_dto(services.show_order.handle(order_id))


@orders_router.api_route("/{order_id}/status", methods=["PATCH", "PUT", "POST"], response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    services: Services = Depends(get_services),
) -> OrderResponse:
    dto = services.update_order_status.handle(order_id, body.status or "")
    return OrderResponse.from_dto(dto)


@orders_router.delete("/{order_id}", status_code=204)
def delete_order(order_id: str, services: Services = Depends(get_services)) -> Response:
    services.delete_order.handle(order_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
def health(services: Services = Depends(get_services)) -> HealthResponse:
    return HealthResponse(queue_backend=services.settings.queue_backend)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, str(exc))


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request", path=request.url.path, errors=exc.errors())
    return _error(400, "Malformed request body")


async def _not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return _error(404, str(exc))


async def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
    logger.warning("Request lost a concurrent update", path=request.url.path, error=str(exc))
    return _error(409, str(exc))


async def _unavailable(request: Request, exc: TransientError) -> JSONResponse:
    logger.error("Backing store unavailable", path=request.url.path, error=str(exc))
    return _error(503, "Service temporarily unavailable")


def create_app(services: Services) -> FastAPI:
    app = FastAPI(title="Orders API")
    app.state.services = services

    app.include_router(orders_router)
    app.include_router(health_router)

    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(EntityNotFoundError, _not_found)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(TransientError, _unavailable)
    return app
