from typing import Protocol

from src.domain.orders.dtos.order_dto import OrderDTO
from src.domain.orders.dtos.swap_dto import SwapTransactionDTO


class SwapBroadcaster(Protocol):
    """
    Builds, submits and confirms pool swaps. Signing happens on the other
    side of this interface; the engine never holds the signing key.
    """

    async def build_swap(
        self,
        order: OrderDTO,
        amount_in: float,
        min_amount_out: float,
    ) -> SwapTransactionDTO: ...

    async def submit(self, txn: SwapTransactionDTO) -> str: ...
    async def confirm(self, signature: str) -> bool: ...
    async def close(self) -> None: ...
