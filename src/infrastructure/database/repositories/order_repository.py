import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update, delete, case
from sqlalchemy.ext.asyncio import AsyncSession

from src.commons.enums.order_enums import OrderKind, OrderStatus
from src.domain.orders.dtos.order_dto import OrderDTO
from src.infrastructure.database.models.order_model import OrderModel

logger = logging.getLogger(__name__)


class OrderRepository:
    """
    Repository for conditional order persistence.

    Status changes are conditional updates (`WHERE id = ? AND status = ?`)
    so concurrent writers cannot both win the same transition.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository.

        Args:
            session: Database session
        """
        self.session = session

    # ==========================
    #        COMMANDS
    # ==========================

    async def save(self, order: OrderDTO) -> OrderDTO:
        """
        Insert a new order.

        Args:
            order: Order to save

        Returns:
            The same DTO that was saved
        """
        model = OrderModel(
            id=str(order.id),
            kind=order.kind,
            trigger_direction=order.trigger_direction,
            token_from=order.token_from,
            token_to=order.token_to,
            amount=order.amount,
            target_price=order.target_price,
            current_price=order.current_price,
            status=order.status,
            pair_address=order.pair_address,
            swap_for_y=order.swap_for_y,
            owner_wallet=order.owner_wallet,
            slippage_bps=order.slippage_bps,
            execution_attempts=order.execution_attempts,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

        self.session.add(model)
        await self.session.commit()

        return order

    async def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        price: Optional[float] = None,
        expected_status: Optional[OrderStatus] = None,
        tx_signature: Optional[str] = None,
    ) -> bool:
        """
        Move an order to `status`.

        When `expected_status` is given the update only applies if the row
        is still in that status (compare-and-set). Terminal rows are never
        updated.

        Returns:
            True if a row changed
        """
        now = datetime.now()
        values = {"status": status, "updated_at": now}
        if price is not None:
            values["current_price"] = price
        if tx_signature is not None:
            values["tx_signature"] = tx_signature
        if status == OrderStatus.EXECUTED:
            values["executed_at"] = now

        stmt = update(OrderModel).where(OrderModel.id == str(order_id))
        if expected_status is not None:
            stmt = stmt.where(OrderModel.status == expected_status)
        else:
            stmt = stmt.where(OrderModel.status.in_([OrderStatus.ACTIVE, OrderStatus.CLAIMED]))

        result = await self.session.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount == 1

    async def update_price(self, order_id: UUID, price: float) -> bool:
        """Refresh the observed price of an ACTIVE order."""
        stmt = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.status == OrderStatus.ACTIVE,
            )
            .values(current_price=price, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def record_signature(self, order_id: UUID, tx_signature: str) -> bool:
        """Attach the submitted swap signature to a CLAIMED order. Keeps updated_at."""
        stmt = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.status == OrderStatus.CLAIMED,
            )
            .values(tx_signature=tx_signature)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def release_claim(
        self,
        order_id: UUID,
        error: Optional[str],
        max_attempts: Optional[int] = None,
    ) -> Optional[OrderStatus]:
        """
        Return a CLAIMED order to ACTIVE after a failed execution, counting
        the attempt. Once `max_attempts` is reached the order becomes FAILED.

        Returns:
            The new status, or None if the order was not claimed
        """
        if max_attempts:
            exhausted = OrderModel.execution_attempts + 1 >= max_attempts
            next_status = case((exhausted, OrderStatus.FAILED), else_=OrderStatus.ACTIVE)
            # a failed order keeps the last signature for manual review
            next_signature = case((exhausted, OrderModel.tx_signature), else_=None)
        else:
            next_status = OrderStatus.ACTIVE
            next_signature = None

        stmt = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.status == OrderStatus.CLAIMED,
            )
            .values(
                status=next_status,
                execution_attempts=OrderModel.execution_attempts + 1,
                last_error=error,
                tx_signature=next_signature,
                updated_at=datetime.now(),
            )
            .returning(OrderModel.status)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        new_status = result.scalar_one_or_none()
        await self.session.commit()
        return new_status

    async def delete(self, order_id: UUID) -> bool:
        stmt = delete(OrderModel).where(OrderModel.id == str(order_id)).execution_options(
            synchronize_session=False
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    # ==========================
    #        QUERIES
    # ==========================

    async def get_by_id(self, order_id: UUID) -> Optional[OrderDTO]:
        """Get order by ID."""
        stmt = select(OrderModel).where(OrderModel.id == str(order_id))
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        return self._model_to_dto(model)

    async def get_by_status(self, status: OrderStatus) -> List[OrderDTO]:
        return await self._list(OrderModel.status == status)

    async def get_by_wallet(self, owner_wallet: str) -> List[OrderDTO]:
        return await self._list(OrderModel.owner_wallet == owner_wallet)

    async def get_by_pair(self, pair_address: str) -> List[OrderDTO]:
        return await self._list(OrderModel.pair_address == pair_address)

    async def get_by_kind(self, kind: OrderKind) -> List[OrderDTO]:
        return await self._list(OrderModel.kind == kind)

    async def get_stale_claims(self, claimed_before: datetime) -> List[OrderDTO]:
        return await self._list(
            OrderModel.status == OrderStatus.CLAIMED,
            OrderModel.updated_at <= claimed_before,
        )

    async def _list(self, *conditions) -> List[OrderDTO]:
        stmt = (
            select(OrderModel)
            .where(*conditions)
            .order_by(OrderModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._model_to_dto(m) for m in result.scalars().all()]

    def _model_to_dto(self, model: OrderModel) -> OrderDTO:
        return OrderDTO(
            id=UUID(model.id),
            kind=OrderKind(model.kind),
            trigger_direction=model.trigger_direction,
            token_from=model.token_from,
            token_to=model.token_to,
            amount=model.amount,
            target_price=model.target_price,
            current_price=model.current_price or 0.0,
            status=OrderStatus(model.status),
            pair_address=model.pair_address,
            swap_for_y=model.swap_for_y,
            owner_wallet=model.owner_wallet,
            slippage_bps=model.slippage_bps,
            execution_attempts=model.execution_attempts or 0,
            last_error=model.last_error,
            tx_signature=model.tx_signature,
            executed_at=model.executed_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
