from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SwapTransactionDTO(BaseModel):
    """Unsigned swap built for one order, ready for the relayer."""

    order_id: UUID
    pair_address: str
    token_from: str
    token_to: str
    amount_in: float = Field(..., gt=0.0)
    min_amount_out: float = Field(..., ge=0.0)
    payer: str
    swap_for_y: bool = True
    payload: Optional[str] = None
