import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from src.commons.enums.order_enums import OrderKind, OrderStatus, TriggerDirection
from src.domain.orders.exceptions import (
    OrderNotCancellableError,
    OrderNotFoundError,
    OrderValidationError,
    PersistenceError,
)


# ==================== TESTS DE CREACIÓN ====================


@pytest.mark.asyncio
async def test_create_order_persists_active_order(order_service, store, oracle, create_request):
    order_request = create_request(kind=OrderKind.LIMIT, amount=3.0, target_price=12.0)
    oracle.set_price(order_request.pair_address, 9.5)

    order_id = await order_service.create_order(order_request)

    saved = await store.get(order_id)
    assert saved.status == OrderStatus.ACTIVE
    assert saved.kind == OrderKind.LIMIT
    assert saved.trigger_direction == TriggerDirection.ABOVE
    assert saved.amount == 3.0
    assert saved.target_price == 12.0
    assert saved.current_price == pytest.approx(9.5)
    assert saved.slippage_bps == 50
    assert saved.owner_wallet == order_request.owner_wallet


@pytest.mark.asyncio
async def test_create_order_seeds_zero_price_when_quote_fails(order_service, store, oracle, create_request):
    """
    Si el primer quote falla, la orden se crea igual con current_price = 0.
    """
    order_request = create_request()
    oracle.fail_next(order_request.pair_address)

    order_id = await order_service.create_order(order_request)

    saved = await store.get(order_id)
    assert saved.status == OrderStatus.ACTIVE
    assert saved.current_price == 0.0


@pytest.mark.asyncio
async def test_create_order_starts_monitor_once(order_service, monitor, mock_scheduler, oracle, create_request):
    order_request = create_request()
    oracle.set_price(order_request.pair_address, 5.0)

    await order_service.create_order(order_request)
    await order_service.create_order(order_request)

    assert monitor.is_running
    mock_scheduler.add_interval_job.assert_called_once()


@pytest.mark.asyncio
async def test_stop_loss_defaults_to_below_direction(order_service, store, oracle, create_request):
    order_request = create_request(kind=OrderKind.STOP_LOSS, target_price=5.0)
    oracle.set_price(order_request.pair_address, 7.0)

    order_id = await order_service.create_order(order_request)

    assert (await store.get(order_id)).trigger_direction == TriggerDirection.BELOW


@pytest.mark.asyncio
async def test_explicit_direction_and_slippage_are_kept(order_service, store, oracle, create_request):
    order_request = create_request(trigger_direction=TriggerDirection.BELOW, slippage_bps=200)
    oracle.set_price(order_request.pair_address, 11.0)

    order_id = await order_service.create_order(order_request)

    saved = await store.get(order_id)
    assert saved.trigger_direction == TriggerDirection.BELOW
    assert saved.slippage_bps == 200


# ==================== TESTS DE VALIDACIÓN ====================


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": 0.0},
        {"amount": -1.0},
        {"amount": float("nan")},
        {"target_price": 0.0},
        {"target_price": -5.0},
        {"token_from": "not-a-mint"},
        {"token_to": ""},
        {"pair_address": "0OIl" * 10},
        {"owner_wallet": "abc"},
        {"token_to": "So11111111111111111111111111111111111111112"},
        {"slippage_bps": 20_000},
        {"slippage_bps": -1},
    ],
)
@pytest.mark.asyncio
async def test_invalid_spec_is_rejected_and_not_persisted(order_service, store, oracle, monitor, create_request, overrides):
    order_request = create_request(**overrides)

    with pytest.raises(OrderValidationError):
        await order_service.create_order(order_request)

    assert await store.get_by_status(OrderStatus.ACTIVE) == []
    assert oracle.calls == []
    assert not monitor.is_running


@pytest.mark.asyncio
async def test_persistence_error_propagates_on_create(order_service, store, oracle, create_request):
    order_request = create_request()
    oracle.set_price(order_request.pair_address, 5.0)
    store.create = AsyncMock(side_effect=PersistenceError("db down"))

    with pytest.raises(PersistenceError, match="db down"):
        await order_service.create_order(order_request)


# ==================== TESTS DE CANCELACIÓN ====================


@pytest.mark.asyncio
async def test_cancel_active_order(order_service, store, make_order):
    order = make_order(current_price=4.0)
    await store.create(order)

    cancelled = await order_service.cancel_order(order.id)

    assert cancelled.status == OrderStatus.CANCELLED
    assert cancelled.current_price == 4.0


@pytest.mark.parametrize(
    "status",
    [OrderStatus.CLAIMED, OrderStatus.EXECUTED, OrderStatus.CANCELLED, OrderStatus.EXPIRED, OrderStatus.FAILED],
)
@pytest.mark.asyncio
async def test_cancel_rejected_unless_active(order_service, store, make_order, status):
    order = make_order(status=status)
    await store.create(order)

    with pytest.raises(OrderNotCancellableError):
        await order_service.cancel_order(order.id)

    assert (await store.get(order.id)).status == status


@pytest.mark.asyncio
async def test_cancel_unknown_order(order_service):
    with pytest.raises(OrderNotFoundError):
        await order_service.cancel_order(uuid4())


# ==================== TESTS DE CONSULTAS ====================


@pytest.mark.asyncio
async def test_list_orders_projections(order_service, store, make_order):
    other_wallet = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
    other_pair = "C8xWcMpzqetpxwLj7tJfSQ6J8Juh1wHFdT5KrkwdYPQZ"
    mine = make_order()
    mine_stop = make_order(kind=OrderKind.STOP_LOSS, target_price=5.0, status=OrderStatus.EXECUTED)
    theirs = make_order(owner_wallet=other_wallet, pair_address=other_pair)
    for order in (mine, mine_stop, theirs):
        await store.create(order)

    by_wallet = await order_service.list_orders_for_wallet(mine.owner_wallet)
    active = await order_service.list_active_orders()
    by_pair = await order_service.list_orders_by_pair(other_pair)
    stops = await order_service.list_orders_by_kind(OrderKind.STOP_LOSS)
    executed = await order_service.list_orders_by_status(OrderStatus.EXECUTED)

    assert {o.id for o in by_wallet} == {mine.id, mine_stop.id}
    assert {o.id for o in active} == {mine.id, theirs.id}
    assert [o.id for o in by_pair] == [theirs.id]
    assert [o.id for o in stops] == [mine_stop.id]
    assert [o.id for o in executed] == [mine_stop.id]


@pytest.mark.asyncio
async def test_get_unknown_order(order_service):
    with pytest.raises(OrderNotFoundError):
        await order_service.get_order(uuid4())


# ==================== TESTS DE BORRADO ====================


@pytest.mark.asyncio
async def test_delete_closed_order(order_service, store, make_order):
    order = make_order(status=OrderStatus.CANCELLED)
    await store.create(order)

    await order_service.delete_order(order.id)

    assert await store.get(order.id) is None


@pytest.mark.parametrize("status", [OrderStatus.ACTIVE, OrderStatus.CLAIMED])
@pytest.mark.asyncio
async def test_delete_open_order_is_rejected(order_service, store, make_order, status):
    order = make_order(status=status)
    await store.create(order)

    with pytest.raises(OrderValidationError):
        await order_service.delete_order(order.id)

    assert await store.get(order.id) is not None


@pytest.mark.asyncio
async def test_stop_halts_monitor(order_service, monitor, oracle, create_request):
    order_request = create_request()
    oracle.set_price(order_request.pair_address, 5.0)
    await order_service.create_order(order_request)

    await order_service.stop()

    assert not monitor.is_running
