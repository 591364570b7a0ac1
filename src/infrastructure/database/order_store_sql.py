import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from src.commons.enums.order_enums import OrderKind, OrderStatus
from src.domain.orders.dtos.order_dto import OrderDTO
from src.domain.orders.exceptions import PersistenceError
from src.infrastructure.database.client import PostgresClient
from src.infrastructure.database.order_store_base import OrderStore
from src.infrastructure.database.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class SqlOrderStore(OrderStore):
    """
    OrderStore backed by PostgreSQL. One session per operation.
    """

    def __init__(self, db_client: PostgresClient):
        self.db_client = db_client

    @asynccontextmanager
    async def _repository(self, operation: str) -> AsyncGenerator[OrderRepository, None]:
        try:
            async with self.db_client.get_session() as session:
                yield OrderRepository(session)
        except SQLAlchemyError as e:
            logger.error(f"Order store {operation} failed: {e}")
            raise PersistenceError(f"Order store {operation} failed: {e}") from e

    async def create(self, order: OrderDTO) -> OrderDTO:
        async with self._repository("create") as repo:
            return await repo.save(order)

    async def get(self, order_id: UUID) -> Optional[OrderDTO]:
        async with self._repository("get") as repo:
            return await repo.get_by_id(order_id)

    async def get_by_status(self, status: OrderStatus) -> List[OrderDTO]:
        async with self._repository("get_by_status") as repo:
            return await repo.get_by_status(status)

    async def get_by_wallet(self, owner_wallet: str) -> List[OrderDTO]:
        async with self._repository("get_by_wallet") as repo:
            return await repo.get_by_wallet(owner_wallet)

    async def get_by_pair(self, pair_address: str) -> List[OrderDTO]:
        async with self._repository("get_by_pair") as repo:
            return await repo.get_by_pair(pair_address)

    async def get_by_kind(self, kind: OrderKind) -> List[OrderDTO]:
        async with self._repository("get_by_kind") as repo:
            return await repo.get_by_kind(kind)

    async def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        price: Optional[float] = None,
        expected_status: Optional[OrderStatus] = None,
        tx_signature: Optional[str] = None,
    ) -> bool:
        async with self._repository("update_status") as repo:
            return await repo.update_status(
                order_id,
                status,
                price=price,
                expected_status=expected_status,
                tx_signature=tx_signature,
            )

    async def update_price(self, order_id: UUID, price: float) -> bool:
        async with self._repository("update_price") as repo:
            return await repo.update_price(order_id, price)

    async def record_signature(self, order_id: UUID, tx_signature: str) -> bool:
        async with self._repository("record_signature") as repo:
            return await repo.record_signature(order_id, tx_signature)

    async def release_claim(
        self,
        order_id: UUID,
        error: Optional[str],
        max_attempts: Optional[int] = None,
    ) -> Optional[OrderStatus]:
        async with self._repository("release_claim") as repo:
            return await repo.release_claim(order_id, error, max_attempts)

    async def get_stale_claims(self, claimed_before: datetime) -> List[OrderDTO]:
        async with self._repository("get_stale_claims") as repo:
            return await repo.get_stale_claims(claimed_before)

    async def delete(self, order_id: UUID) -> bool:
        async with self._repository("delete") as repo:
            return await repo.delete(order_id)
