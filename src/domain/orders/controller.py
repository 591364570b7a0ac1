from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from dependency_injector.wiring import inject, Provide

from src.domain.orders.dtos.order_dto import CreateOrderDTO, OrderDTO
from src.domain.orders.exceptions import (
    OrderNotCancellableError,
    OrderNotFoundError,
    OrderValidationError,
    PersistenceError,
)
from src.domain.orders.order_service import OrderService
from src.domain.orders.orders_module import OrdersModule


router = APIRouter(prefix="/orders", tags=["orders"])


def _to_http_error(error: Exception) -> HTTPException:
    if isinstance(error, OrderNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, OrderNotCancellableError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, OrderValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    if isinstance(error, PersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Order store unavailable")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a conditional order")
@inject
async def create_order(
    order_request: CreateOrderDTO,
    service: OrderService = Depends(Provide[OrdersModule.order_service]),
) -> dict:
    try:
        order_id = await service.create_order(order_request)
    except (OrderValidationError, PersistenceError) as e:
        raise _to_http_error(e) from e
    return {"id": str(order_id)}


@router.get("/active", summary="List active orders")
@inject
async def list_active_orders(
    service: OrderService = Depends(Provide[OrdersModule.order_service]),
) -> List[OrderDTO]:
    try:
        return await service.list_active_orders()
    except PersistenceError as e:
        raise _to_http_error(e) from e


@router.get("/wallet/{owner_wallet}", summary="List orders for a wallet")
@inject
async def list_orders_for_wallet(
    owner_wallet: str,
    service: OrderService = Depends(Provide[OrdersModule.order_service]),
) -> List[OrderDTO]:
    try:
        return await service.list_orders_for_wallet(owner_wallet)
    except PersistenceError as e:
        raise _to_http_error(e) from e


@router.get("/pair/{pair_address}", summary="List orders for a pool")
@inject
async def list_orders_by_pair(
    pair_address: str,
    service: OrderService = Depends(Provide[OrdersModule.order_service]),
) -> List[OrderDTO]:
    try:
        return await service.list_orders_by_pair(pair_address)
    except PersistenceError as e:
        raise _to_http_error(e) from e


@router.get("/{order_id}", summary="Get one order")
@inject
async def get_order(
    order_id: UUID,
    service: OrderService = Depends(Provide[OrdersModule.order_service]),
) -> OrderDTO:
    try:
        return await service.get_order(order_id)
    except (OrderValidationError, PersistenceError) as e:
        raise _to_http_error(e) from e


@router.post("/{order_id}/cancel", summary="Cancel an active order")
@inject
async def cancel_order(
    order_id: UUID,
    service: OrderService = Depends(Provide[OrdersModule.order_service]),
) -> OrderDTO:
    try:
        return await service.cancel_order(order_id)
    except (OrderValidationError, PersistenceError) as e:
        raise _to_http_error(e) from e


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a closed order")
@inject
async def delete_order(
    order_id: UUID,
    service: OrderService = Depends(Provide[OrdersModule.order_service]),
) -> None:
    try:
        await service.delete_order(order_id)
    except (OrderValidationError, PersistenceError) as e:
        raise _to_http_error(e) from e
