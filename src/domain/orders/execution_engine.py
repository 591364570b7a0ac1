import asyncio
import logging
from typing import Optional

from src.commons.enums.order_enums import OrderStatus
from src.domain.orders.dtos.order_dto import OrderDTO
from src.domain.orders.exceptions import ExecutionFailure, PersistenceError
from src.domain.orders.quotes import fetch_quote
from src.domain.orders.triggers import should_execute
from src.infrastructure.broker.swap_base import SwapBroadcaster
from src.infrastructure.database.order_store_base import OrderStore
from src.infrastructure.pricing.price_oracle_base import PriceOracle


logger = logging.getLogger(__name__)


class ExecutionEngine:
    """
    Executes a firing order as one swap.

    The order is claimed (ACTIVE -> CLAIMED) before anything is built, so a
    second caller for the same id is a no-op. The claim ends either in
    EXECUTED or back in ACTIVE (FAILED once the attempt budget is spent).
    """

    def __init__(
        self,
        store: OrderStore,
        oracle: PriceOracle,
        broadcaster: SwapBroadcaster,
        quote_timeout: float = 10.0,
        execution_timeout: float = 20.0,
        max_attempts: Optional[int] = None,
    ):
        self.store = store
        self.oracle = oracle
        self.broadcaster = broadcaster
        self.quote_timeout = quote_timeout
        self.execution_timeout = execution_timeout
        self.max_attempts = max_attempts

    async def execute(self, order: OrderDTO) -> bool:
        """
        Returns:
            True if the order reached EXECUTED in this call
        """
        claimed = await self.store.update_status(
            order.id,
            OrderStatus.CLAIMED,
            expected_status=OrderStatus.ACTIVE,
        )
        if not claimed:
            logger.info(f"Order {order.id} already claimed or closed, skipping execution")
            return False

        claimed_order = order.model_copy(update={"status": OrderStatus.CLAIMED})

        try:
            # 1) Fresh quote for the full amount
            quote = await fetch_quote(
                self.oracle,
                pair_address=order.pair_address,
                token_from=order.token_from,
                token_to=order.token_to,
                amount_in=order.amount,
                swap_for_y=order.swap_for_y,
                timeout=self.quote_timeout,
            )
            price = quote.exchange_rate

            if not should_execute(claimed_order, price):
                logger.info(
                    f"Order {order.id} no longer triggers at fresh price {price:.6f} "
                    f"(target {order.target_price}), releasing claim"
                )
                # current_price keeps the reference-sized rate written by the sweep
                await self.store.update_status(
                    order.id,
                    OrderStatus.ACTIVE,
                    expected_status=OrderStatus.CLAIMED,
                )
                return False

            # 2) Build, sign and confirm the swap
            signature = await asyncio.wait_for(
                self._swap(claimed_order, quote.amount_out),
                timeout=self.execution_timeout,
            )

        except Exception as e:
            await self._release(order, self._describe(e))
            return False

        # 3) Commit the claim
        try:
            committed = await self.store.update_status(
                order.id,
                OrderStatus.EXECUTED,
                price=price,
                expected_status=OrderStatus.CLAIMED,
                tx_signature=signature,
            )
        except PersistenceError as e:
            logger.error(
                f"Order {order.id} swap {signature} confirmed but could not be committed: {e}. "
                f"Left CLAIMED for stale-claim recovery"
            )
            return False
        if not committed:
            logger.error(
                f"Order {order.id} swap {signature} confirmed but the claim was lost"
            )
            return False

        logger.info(
            f"Order executed: {order.id} {order.kind.value} {order.amount} "
            f"{order.token_from} -> {order.token_to} @ {price:.6f} ({signature})"
        )
        return True

    async def _swap(self, order: OrderDTO, quoted_amount_out: float) -> str:
        min_amount_out = order.min_amount_out(quoted_amount_out)

        txn = await self.broadcaster.build_swap(
            order,
            amount_in=order.amount,
            min_amount_out=min_amount_out,
        )
        signature = await self.broadcaster.submit(txn)
        await self.store.record_signature(order.id, signature)
        confirmed = await self.broadcaster.confirm(signature)

        if not confirmed:
            raise ExecutionFailure(f"Transaction {signature} was not confirmed")
        return signature

    async def _release(self, order: OrderDTO, error: str) -> None:
        logger.error(f"Error executing order {order.id}: {error}")

        try:
            status = await self.store.release_claim(order.id, error, self.max_attempts)
        except PersistenceError as e:
            logger.error(
                f"Order {order.id} claim could not be released: {e}. "
                f"Left CLAIMED for stale-claim recovery"
            )
            return

        if status == OrderStatus.FAILED:
            logger.error(
                f"Order {order.id} marked as failed after {self.max_attempts} attempts"
            )
        elif status is None:
            logger.error(f"Order {order.id} claim could not be released")

    @staticmethod
    def _describe(error: Exception) -> str:
        if isinstance(error, asyncio.TimeoutError):
            return "execution timed out"
        return str(error) or error.__class__.__name__
