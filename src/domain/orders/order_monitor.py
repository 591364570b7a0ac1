import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from src.commons.enums.order_enums import OrderStatus
from src.domain.orders.dtos.order_dto import OrderDTO
from src.domain.orders.dtos.sweep_dto import SweepResultDTO
from src.domain.orders.exceptions import PricingUnavailable, PersistenceError
from src.domain.orders.execution_engine import ExecutionEngine
from src.domain.orders.quotes import spot_price
from src.domain.orders.triggers import should_execute
from src.infrastructure.database.order_store_base import OrderStore
from src.infrastructure.pricing.price_oracle_base import PriceOracle
from src.infrastructure.scheduler.scheduler import JobScheduler


logger = logging.getLogger(__name__)


class OrderMonitor:
    """
    Periodic sweep over ACTIVE orders.

    Each tick snapshots the active orders, re-prices them concurrently,
    and hands firing orders to the ExecutionEngine. Ticks never overlap:
    the scheduler runs one instance at a time and `run_sweep` holds a lock
    until every execution it dispatched has finished.
    """

    JOB_ID = "order_monitor_sweep"

    def __init__(
        self,
        store: OrderStore,
        oracle: PriceOracle,
        engine: ExecutionEngine,
        scheduler: JobScheduler,
        interval_seconds: float = 30.0,
        quote_timeout: float = 10.0,
        price_reference_amount: float = 1.0,
        order_ttl_seconds: Optional[float] = None,
        stale_claim_seconds: Optional[float] = None,
    ):
        self.store = store
        self.oracle = oracle
        self.engine = engine
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self.quote_timeout = quote_timeout
        self.price_reference_amount = price_reference_amount
        self.order_ttl_seconds = order_ttl_seconds
        # a claim older than every engine deadline has no live owner
        self.stale_claim_seconds = (
            stale_claim_seconds
            if stale_claim_seconds is not None
            else engine.quote_timeout + engine.execution_timeout
        )

        self._running = False
        self._start_lock = asyncio.Lock()
        self._sweep_lock = asyncio.Lock()
        self.last_sweep: Optional[SweepResultDTO] = None

    @property
    def is_running(self) -> bool:
        return self._running

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------
    async def start(self) -> None:
        async with self._start_lock:
            if self._running:
                return

            await self.scheduler.start()
            self.scheduler.add_interval_job(
                self._tick,
                seconds=self.interval_seconds,
                job_id=self.JOB_ID,
            )
            self._running = True
            logger.info(f"Order monitor started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop scheduling sweeps and wait for the in-flight one."""
        async with self._start_lock:
            if not self._running:
                return

            self.scheduler.remove_job(self.JOB_ID)
            self._running = False

        async with self._sweep_lock:
            logger.info("Order monitor stopped")

    # ---------------------------------------------------------------------
    # Sweep
    # ---------------------------------------------------------------------
    async def _tick(self) -> None:
        try:
            await self.run_sweep()
        except Exception as e:
            logger.error(f"Order monitor sweep failed: {e}")

    async def run_sweep(self) -> SweepResultDTO:
        async with self._sweep_lock:
            result = SweepResultDTO()

            try:
                result.recovered = await self.recover_stale_claims()
            except PersistenceError as e:
                logger.error(f"Could not recover stale claims: {e}")
                result.failed += 1

            try:
                orders = await self.store.get_by_status(OrderStatus.ACTIVE)
            except PersistenceError as e:
                logger.error(f"Could not load active orders: {e}")
                result.failed += 1
                self.last_sweep = result
                return result

            result.checked = len(orders)
            if orders:
                logger.debug(f"Sweeping {len(orders)} active orders")

            await asyncio.gather(
                *(self._check_order(order, result) for order in orders)
            )

            self.last_sweep = result
            if result.triggered or result.expired or result.recovered or result.failed:
                logger.info(
                    f"Sweep done: checked={result.checked} priced={result.priced} "
                    f"triggered={result.triggered} executed={result.executed} "
                    f"expired={result.expired} recovered={result.recovered} failed={result.failed}"
                )
            return result

    async def _check_order(self, order: OrderDTO, result: SweepResultDTO) -> None:
        try:
            if self._is_expired(order):
                if await self.store.update_status(
                    order.id,
                    OrderStatus.EXPIRED,
                    expected_status=OrderStatus.ACTIVE,
                ):
                    result.expired += 1
                    logger.info(f"Order {order.id} expired")
                return

            try:
                price = await spot_price(
                    self.oracle,
                    pair_address=order.pair_address,
                    token_from=order.token_from,
                    token_to=order.token_to,
                    reference_amount=self.price_reference_amount,
                    swap_for_y=order.swap_for_y,
                    timeout=self.quote_timeout,
                )
            except PricingUnavailable as e:
                logger.warning(f"No price for order {order.id} this cycle: {e}")
                return

            if not await self.store.update_price(order.id, price):
                # cancelled or claimed since the snapshot
                return
            result.priced += 1

            observed = order.model_copy(update={"current_price": price})
            if not should_execute(observed, price):
                return

            result.triggered += 1
            logger.info(
                f"Order {order.id} triggered: {order.kind.value} price={price:.6f} "
                f"target={order.target_price}"
            )
            if await self.engine.execute(observed):
                result.executed += 1

        except Exception as e:
            result.failed += 1
            logger.error(f"Error checking order {order.id}: {e}")

    def _is_expired(self, order: OrderDTO) -> bool:
        if not self.order_ttl_seconds:
            return False
        return datetime.now() - order.created_at >= timedelta(seconds=self.order_ttl_seconds)

    async def recover_stale_claims(self) -> int:
        """
        Close out claims whose execution died without releasing them.

        A claim without a recorded signature goes back to ACTIVE (counting
        the attempt). One with a signature was submitted and its outcome is
        unknown, so it is marked FAILED for manual review instead of
        risking a second swap.
        """
        claimed_before = datetime.now() - timedelta(seconds=self.stale_claim_seconds)
        recovered = 0

        for order in await self.store.get_stale_claims(claimed_before):
            if order.tx_signature:
                status = await self.store.release_claim(
                    order.id,
                    f"stale claim after submitting {order.tx_signature}",
                    max_attempts=1,
                )
            else:
                status = await self.store.release_claim(
                    order.id,
                    "stale claim released",
                    self.engine.max_attempts,
                )

            if status is not None:
                recovered += 1
                logger.warning(f"Stale claim on order {order.id} recovered as {status.value}")

        return recovered
