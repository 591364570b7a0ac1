import pytest
from unittest.mock import AsyncMock, MagicMock

from src.commons.enums.order_enums import OrderKind, OrderStatus
from src.domain.orders.dtos.order_dto import (
    CreateOrderDTO,
    OrderDTO,
    default_trigger_direction,
)
from src.domain.orders.execution_engine import ExecutionEngine
from src.domain.orders.order_monitor import OrderMonitor
from src.domain.orders.order_service import OrderService
from src.infrastructure.broker.swap_fake import FakeSwapBroadcaster
from src.infrastructure.database.order_store_memory import InMemoryOrderStore
from src.infrastructure.pricing.price_oracle_fake import FakePriceOracle


SOL = "So11111111111111111111111111111111111111112"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL_USDC_PAIR = "BqjKYjybeYjM83eUdDjAksEkbZisKBEqbGt7zKkGEgnW"
WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


def _make_order(
    kind: OrderKind = OrderKind.LIMIT,
    target_price: float = 10.0,
    current_price: float = 0.0,
    amount: float = 2.0,
    status: OrderStatus = OrderStatus.ACTIVE,
    **overrides,
) -> OrderDTO:
    """Helper para crear órdenes de prueba."""
    fields = dict(
        kind=kind,
        trigger_direction=default_trigger_direction(kind),
        token_from=SOL,
        token_to=USDC,
        amount=amount,
        target_price=target_price,
        current_price=current_price,
        status=status,
        pair_address=SOL_USDC_PAIR,
        owner_wallet=WALLET,
    )
    fields.update(overrides)
    return OrderDTO(**fields)


@pytest.fixture
def make_order():
    return _make_order


@pytest.fixture
def create_request():
    """Helper para crear requests de orden válidos."""
    def _create_request(**overrides) -> CreateOrderDTO:
        fields = dict(
            kind=OrderKind.LIMIT,
            token_from=SOL,
            token_to=USDC,
            amount=2.0,
            target_price=10.0,
            pair_address=SOL_USDC_PAIR,
            owner_wallet=WALLET,
        )
        fields.update(overrides)
        return CreateOrderDTO(**fields)

    return _create_request


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.fixture
def oracle():
    return FakePriceOracle()


@pytest.fixture
def broadcaster():
    return FakeSwapBroadcaster()


@pytest.fixture
def mock_scheduler():
    """Mock del JobScheduler."""
    scheduler = MagicMock()
    scheduler.start = AsyncMock()
    scheduler.add_interval_job = MagicMock()
    scheduler.remove_job = MagicMock()
    return scheduler


@pytest.fixture
def engine(store, oracle, broadcaster):
    return ExecutionEngine(
        store=store,
        oracle=oracle,
        broadcaster=broadcaster,
        quote_timeout=1.0,
        execution_timeout=1.0,
        max_attempts=3,
    )


@pytest.fixture
def monitor(store, oracle, engine, mock_scheduler):
    return OrderMonitor(
        store=store,
        oracle=oracle,
        engine=engine,
        scheduler=mock_scheduler,
        interval_seconds=30.0,
        quote_timeout=1.0,
    )


@pytest.fixture
def order_service(store, oracle, monitor):
    return OrderService(
        store=store,
        oracle=oracle,
        monitor=monitor,
        default_slippage_bps=50,
        quote_timeout=1.0,
    )
