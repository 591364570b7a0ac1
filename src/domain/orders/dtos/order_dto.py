from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, ConfigDict

from src.commons.enums.order_enums import (
    OrderKind,
    OrderStatus,
    TriggerDirection,
)


DEFAULT_DIRECTIONS = {
    OrderKind.LIMIT: TriggerDirection.ABOVE,
    OrderKind.STOP_LOSS: TriggerDirection.BELOW,
}


def default_trigger_direction(kind: OrderKind) -> TriggerDirection:
    return DEFAULT_DIRECTIONS[kind]


class CreateOrderDTO(BaseModel):
    """
    User request for a new conditional order.

    Amount and price bounds are checked by OrderService so that a bad
    request surfaces as OrderValidationError instead of a pydantic error.
    """

    kind: OrderKind = OrderKind.LIMIT
    token_from: str
    token_to: str
    amount: float
    target_price: float
    pair_address: str
    owner_wallet: str

    trigger_direction: Optional[TriggerDirection] = None
    swap_for_y: bool = True
    slippage_bps: Optional[int] = None


class OrderDTO(BaseModel):
    """
    Conditional order (Pydantic model).
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    kind: OrderKind
    trigger_direction: TriggerDirection

    token_from: str
    token_to: str
    amount: float = Field(..., gt=0.0)
    target_price: float = Field(..., gt=0.0)
    current_price: float = Field(default=0.0, ge=0.0)

    status: OrderStatus = OrderStatus.ACTIVE
    pair_address: str
    swap_for_y: bool = True
    owner_wallet: str
    slippage_bps: int = Field(default=50, ge=0, le=10_000)

    execution_attempts: int = 0
    last_error: Optional[str] = None
    tx_signature: Optional[str] = None
    executed_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_active(self) -> bool:
        return self.status == OrderStatus.ACTIVE

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def min_amount_out(self, quoted_amount_out: float) -> float:
        """Minimum received for a quote, after slippage tolerance."""
        return quoted_amount_out * (1 - self.slippage_bps / 10_000)
