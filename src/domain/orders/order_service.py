import logging
import math
import re
from typing import List, Optional
from uuid import UUID

from src.commons.enums.order_enums import OrderKind, OrderStatus
from src.domain.orders.dtos.order_dto import (
    CreateOrderDTO,
    OrderDTO,
    default_trigger_direction,
)
from src.domain.orders.exceptions import (
    OrderNotCancellableError,
    OrderNotFoundError,
    OrderValidationError,
    PricingUnavailable,
)
from src.domain.orders.order_monitor import OrderMonitor
from src.domain.orders.quotes import spot_price
from src.infrastructure.database.order_store_base import OrderStore
from src.infrastructure.pricing.price_oracle_base import PriceOracle


logger = logging.getLogger(__name__)

# Solana public keys: 32 bytes in base58
ADDRESS_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class OrderService:
    """
    Public entry point for conditional orders: create, cancel and list.
    Owns the OrderMonitor lifecycle.
    """

    def __init__(
        self,
        store: OrderStore,
        oracle: PriceOracle,
        monitor: OrderMonitor,
        default_slippage_bps: int = 50,
        price_reference_amount: float = 1.0,
        quote_timeout: float = 10.0,
    ):
        self.store = store
        self.oracle = oracle
        self.monitor = monitor
        self.default_slippage_bps = default_slippage_bps
        self.price_reference_amount = price_reference_amount
        self.quote_timeout = quote_timeout

    # ==================== COMMANDS ====================

    async def create_order(self, order_request: CreateOrderDTO) -> UUID:
        self._validate(order_request)

        # 1) Reference price, best effort
        try:
            current_price = await spot_price(
                self.oracle,
                pair_address=order_request.pair_address,
                token_from=order_request.token_from,
                token_to=order_request.token_to,
                reference_amount=self.price_reference_amount,
                swap_for_y=order_request.swap_for_y,
                timeout=self.quote_timeout,
            )
        except PricingUnavailable as e:
            logger.warning(f"Initial quote failed for pair {order_request.pair_address}: {e}")
            current_price = 0.0

        # 2) Persist as ACTIVE
        order = OrderDTO(
            kind=order_request.kind,
            trigger_direction=order_request.trigger_direction or default_trigger_direction(order_request.kind),
            token_from=order_request.token_from,
            token_to=order_request.token_to,
            amount=order_request.amount,
            target_price=order_request.target_price,
            current_price=current_price,
            status=OrderStatus.ACTIVE,
            pair_address=order_request.pair_address,
            swap_for_y=order_request.swap_for_y,
            owner_wallet=order_request.owner_wallet,
            slippage_bps=(
                order_request.slippage_bps
                if order_request.slippage_bps is not None
                else self.default_slippage_bps
            ),
        )
        await self.store.create(order)

        logger.info(
            f"Order created: {order.id} {order.kind.value} {order.amount} "
            f"{order.token_from} -> {order.token_to} target={order.target_price} "
            f"({order.trigger_direction.value}), current={current_price}"
        )

        # 3) Make sure someone is watching
        if not self.monitor.is_running:
            await self.monitor.start()

        return order.id

    async def cancel_order(self, order_id: UUID) -> OrderDTO:
        """
        Cancel an ACTIVE order. Rejected once an execution has claimed it.
        """
        cancelled = await self.store.update_status(
            order_id,
            OrderStatus.CANCELLED,
            expected_status=OrderStatus.ACTIVE,
        )
        order = await self.store.get(order_id)

        if order is None:
            raise OrderNotFoundError(order_id)
        if not cancelled:
            raise OrderNotCancellableError(order_id, order.status.value)

        logger.info(f"Order cancelled: {order_id}")
        return order

    async def delete_order(self, order_id: UUID) -> None:
        """Maintenance delete. Only closed orders can be removed."""
        order = await self.store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not order.is_terminal:
            raise OrderValidationError(
                f"Order {order_id} is {order.status.value}; cancel it before deleting"
            )

        await self.store.delete(order_id)
        logger.info(f"Order deleted: {order_id}")

    async def stop(self) -> None:
        await self.monitor.stop()

    # ==================== QUERIES ====================

    async def get_order(self, order_id: UUID) -> OrderDTO:
        order = await self.store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def list_orders_for_wallet(self, owner_wallet: str) -> List[OrderDTO]:
        return await self.store.get_by_wallet(owner_wallet)

    async def list_active_orders(self) -> List[OrderDTO]:
        return await self.store.get_by_status(OrderStatus.ACTIVE)

    async def list_orders_by_status(self, status: OrderStatus) -> List[OrderDTO]:
        return await self.store.get_by_status(status)

    async def list_orders_by_pair(self, pair_address: str) -> List[OrderDTO]:
        return await self.store.get_by_pair(pair_address)

    async def list_orders_by_kind(self, kind: OrderKind) -> List[OrderDTO]:
        return await self.store.get_by_kind(kind)

    # ==================== VALIDATION ====================

    def _validate(self, order_request: CreateOrderDTO) -> None:
        if not math.isfinite(order_request.amount) or order_request.amount <= 0:
            raise OrderValidationError("Amount must be greater than zero")
        if not math.isfinite(order_request.target_price) or order_request.target_price <= 0:
            raise OrderValidationError("Target price must be greater than zero")

        for field in ("token_from", "token_to", "pair_address", "owner_wallet"):
            value = getattr(order_request, field)
            if not self._is_address(value):
                raise OrderValidationError(f"Invalid {field}: {value!r}")

        if order_request.token_from == order_request.token_to:
            raise OrderValidationError("token_from and token_to must differ")

        if order_request.slippage_bps is not None and not 0 <= order_request.slippage_bps <= 10_000:
            raise OrderValidationError("slippage_bps must be between 0 and 10000")

    @staticmethod
    def _is_address(value: Optional[str]) -> bool:
        return bool(value) and ADDRESS_PATTERN.match(value) is not None
