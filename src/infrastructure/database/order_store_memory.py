import asyncio
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from src.commons.enums.order_enums import OrderKind, OrderStatus
from src.domain.orders.dtos.order_dto import OrderDTO
from src.infrastructure.database.order_store_base import OrderStore


class InMemoryOrderStore(OrderStore):
    """
    Process-local OrderStore for development and tests.

    Every mutation runs under one asyncio.Lock, which gives the same
    per-id compare-and-set guarantees as the SQL store. Reads return copies.
    """

    def __init__(self) -> None:
        self._orders: Dict[UUID, OrderDTO] = {}
        self._lock = asyncio.Lock()

    async def create(self, order: OrderDTO) -> OrderDTO:
        async with self._lock:
            if order.id in self._orders:
                raise ValueError(f"Order {order.id} already exists")
            self._orders[order.id] = order.model_copy()
        return order

    async def get(self, order_id: UUID) -> Optional[OrderDTO]:
        order = self._orders.get(order_id)
        return order.model_copy() if order else None

    async def get_by_status(self, status: OrderStatus) -> List[OrderDTO]:
        return self._select(lambda o: o.status == status)

    async def get_by_wallet(self, owner_wallet: str) -> List[OrderDTO]:
        return self._select(lambda o: o.owner_wallet == owner_wallet)

    async def get_by_pair(self, pair_address: str) -> List[OrderDTO]:
        return self._select(lambda o: o.pair_address == pair_address)

    async def get_by_kind(self, kind: OrderKind) -> List[OrderDTO]:
        return self._select(lambda o: o.kind == kind)

    async def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        price: Optional[float] = None,
        expected_status: Optional[OrderStatus] = None,
        tx_signature: Optional[str] = None,
    ) -> bool:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.is_terminal:
                return False
            if expected_status is not None and order.status != expected_status:
                return False

            now = datetime.now()
            changes = {"status": status, "updated_at": now}
            if price is not None:
                changes["current_price"] = price
            if tx_signature is not None:
                changes["tx_signature"] = tx_signature
            if status == OrderStatus.EXECUTED:
                changes["executed_at"] = now

            self._orders[order_id] = order.model_copy(update=changes)
            return True

    async def update_price(self, order_id: UUID, price: float) -> bool:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status != OrderStatus.ACTIVE:
                return False
            self._orders[order_id] = order.model_copy(
                update={"current_price": price, "updated_at": datetime.now()}
            )
            return True

    async def record_signature(self, order_id: UUID, tx_signature: str) -> bool:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status != OrderStatus.CLAIMED:
                return False
            self._orders[order_id] = order.model_copy(update={"tx_signature": tx_signature})
            return True

    async def release_claim(
        self,
        order_id: UUID,
        error: Optional[str],
        max_attempts: Optional[int] = None,
    ) -> Optional[OrderStatus]:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status != OrderStatus.CLAIMED:
                return None

            attempts = order.execution_attempts + 1
            if max_attempts and attempts >= max_attempts:
                status = OrderStatus.FAILED
            else:
                status = OrderStatus.ACTIVE

            self._orders[order_id] = order.model_copy(
                update={
                    "status": status,
                    "execution_attempts": attempts,
                    "last_error": error,
                    # a failed order keeps the last signature for manual review
                    "tx_signature": order.tx_signature if status == OrderStatus.FAILED else None,
                    "updated_at": datetime.now(),
                }
            )
            return status

    async def get_stale_claims(self, claimed_before: datetime) -> List[OrderDTO]:
        return self._select(
            lambda o: o.status == OrderStatus.CLAIMED and o.updated_at <= claimed_before
        )

    async def delete(self, order_id: UUID) -> bool:
        async with self._lock:
            return self._orders.pop(order_id, None) is not None

    def _select(self, predicate) -> List[OrderDTO]:
        matches = [o.model_copy() for o in self._orders.values() if predicate(o)]
        return sorted(matches, key=lambda o: o.created_at, reverse=True)
