import asyncio
from typing import Dict, List, Optional, Set
from uuid import uuid4

from src.domain.orders.dtos.order_dto import OrderDTO
from src.domain.orders.dtos.swap_dto import SwapTransactionDTO
from src.domain.orders.exceptions import ExecutionFailure
from src.infrastructure.broker.swap_base import SwapBroadcaster


class FakeSwapBroadcaster(SwapBroadcaster):
    """
    Fake relayer que:
    - construye transacciones sin red
    - "firma" con una firma aleatoria
    - confirma al instante, salvo que se configure un fallo por etapa
    """

    STAGES = ("build", "submit", "confirm")

    def __init__(self, fail_stages: Optional[Set[str]] = None, latency: float = 0.0):
        self.fail_stages: Set[str] = set(fail_stages or ())
        self.latency = latency
        self.built: List[SwapTransactionDTO] = []
        self.submitted: List[SwapTransactionDTO] = []
        self._signatures: Dict[str, SwapTransactionDTO] = {}

    async def build_swap(
        self,
        order: OrderDTO,
        amount_in: float,
        min_amount_out: float,
    ) -> SwapTransactionDTO:
        await self._maybe_fail("build")
        txn = SwapTransactionDTO(
            order_id=order.id,
            pair_address=order.pair_address,
            token_from=order.token_from,
            token_to=order.token_to,
            amount_in=amount_in,
            min_amount_out=min_amount_out,
            payer=order.owner_wallet,
            swap_for_y=order.swap_for_y,
            payload=f"fake-tx-{order.id}",
        )
        self.built.append(txn)
        return txn

    async def submit(self, txn: SwapTransactionDTO) -> str:
        await self._maybe_fail("submit")
        signature = uuid4().hex
        self.submitted.append(txn)
        self._signatures[signature] = txn
        return signature

    async def confirm(self, signature: str) -> bool:
        await asyncio.sleep(self.latency)
        if "confirm" in self.fail_stages:
            return False
        return signature in self._signatures

    async def close(self) -> None:
        return None

    async def _maybe_fail(self, stage: str) -> None:
        await asyncio.sleep(self.latency)
        if stage in self.fail_stages:
            raise ExecutionFailure(f"Fake {stage} failure")
