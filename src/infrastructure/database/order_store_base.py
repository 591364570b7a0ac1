from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from src.commons.enums.order_enums import OrderKind, OrderStatus
from src.domain.orders.dtos.order_dto import OrderDTO


class OrderStore(Protocol):
    """
    Durable order storage. Status updates are per-id atomic; passing
    `expected_status` turns them into compare-and-set operations.
    Implementations raise PersistenceError when the backend fails.

    While an order is CLAIMED its updated_at is the claim time: recording
    the swap signature does not touch it.
    """

    async def create(self, order: OrderDTO) -> OrderDTO: ...
    async def get(self, order_id: UUID) -> Optional[OrderDTO]: ...
    async def get_by_status(self, status: OrderStatus) -> List[OrderDTO]: ...
    async def get_by_wallet(self, owner_wallet: str) -> List[OrderDTO]: ...
    async def get_by_pair(self, pair_address: str) -> List[OrderDTO]: ...
    async def get_by_kind(self, kind: OrderKind) -> List[OrderDTO]: ...

    async def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        price: Optional[float] = None,
        expected_status: Optional[OrderStatus] = None,
        tx_signature: Optional[str] = None,
    ) -> bool: ...

    async def update_price(self, order_id: UUID, price: float) -> bool: ...
    async def record_signature(self, order_id: UUID, tx_signature: str) -> bool: ...

    async def release_claim(
        self,
        order_id: UUID,
        error: Optional[str],
        max_attempts: Optional[int] = None,
    ) -> Optional[OrderStatus]: ...

    async def get_stale_claims(self, claimed_before: datetime) -> List[OrderDTO]: ...

    async def delete(self, order_id: UUID) -> bool: ...
