import asyncio
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from src.commons.enums.order_enums import OrderKind, OrderStatus, TriggerDirection
from src.domain.orders.dtos.order_dto import OrderDTO
from src.infrastructure.database.order_store_memory import InMemoryOrderStore


def _order(**overrides) -> OrderDTO:
    fields = dict(
        kind=OrderKind.LIMIT,
        trigger_direction=TriggerDirection.ABOVE,
        token_from="So11111111111111111111111111111111111111112",
        token_to="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        amount=1.0,
        target_price=10.0,
        pair_address="BqjKYjybeYjM83eUdDjAksEkbZisKBEqbGt7zKkGEgnW",
        owner_wallet="9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
    )
    fields.update(overrides)
    return OrderDTO(**fields)


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.mark.asyncio
async def test_create_and_get_returns_copy(store):
    order = _order()
    await store.create(order)

    loaded = await store.get(order.id)
    loaded.current_price = 99.0

    assert (await store.get(order.id)).current_price == 0.0


@pytest.mark.asyncio
async def test_duplicate_create_is_rejected(store):
    order = _order()
    await store.create(order)

    with pytest.raises(ValueError):
        await store.create(order)


@pytest.mark.asyncio
async def test_get_unknown_returns_none(store):
    assert await store.get(uuid4()) is None


@pytest.mark.asyncio
async def test_compare_and_set_status(store):
    order = _order()
    await store.create(order)

    assert await store.update_status(order.id, OrderStatus.CLAIMED, expected_status=OrderStatus.ACTIVE)
    assert not await store.update_status(order.id, OrderStatus.CLAIMED, expected_status=OrderStatus.ACTIVE)
    assert (await store.get(order.id)).status == OrderStatus.CLAIMED


@pytest.mark.asyncio
async def test_concurrent_claims_have_one_winner(store):
    order = _order()
    await store.create(order)

    results = await asyncio.gather(
        *[
            store.update_status(order.id, OrderStatus.CLAIMED, expected_status=OrderStatus.ACTIVE)
            for _ in range(10)
        ]
    )

    assert results.count(True) == 1


@pytest.mark.asyncio
async def test_terminal_orders_are_frozen(store):
    order = _order(status=OrderStatus.EXECUTED, current_price=10.0)
    await store.create(order)

    assert not await store.update_status(order.id, OrderStatus.ACTIVE)
    assert not await store.update_price(order.id, 1.0)
    assert await store.release_claim(order.id, "boom") is None
    assert (await store.get(order.id)).current_price == 10.0


@pytest.mark.asyncio
async def test_executed_sets_signature_and_timestamp(store):
    order = _order(status=OrderStatus.CLAIMED)
    await store.create(order)

    await store.update_status(
        order.id, OrderStatus.EXECUTED, price=10.2, expected_status=OrderStatus.CLAIMED, tx_signature="sig"
    )

    saved = await store.get(order.id)
    assert saved.tx_signature == "sig"
    assert saved.executed_at is not None
    assert saved.current_price == 10.2


@pytest.mark.asyncio
async def test_update_price_only_while_active(store):
    active = _order()
    claimed = _order(status=OrderStatus.CLAIMED)
    await store.create(active)
    await store.create(claimed)

    assert await store.update_price(active.id, 4.2)
    assert not await store.update_price(claimed.id, 4.2)
    assert (await store.get(active.id)).current_price == 4.2
    assert (await store.get(claimed.id)).current_price == 0.0


@pytest.mark.asyncio
async def test_release_claim_counts_attempts(store):
    order = _order(status=OrderStatus.CLAIMED)
    await store.create(order)

    assert await store.release_claim(order.id, "first", max_attempts=2) == OrderStatus.ACTIVE
    await store.update_status(order.id, OrderStatus.CLAIMED, expected_status=OrderStatus.ACTIVE)
    assert await store.release_claim(order.id, "second", max_attempts=2) == OrderStatus.FAILED

    saved = await store.get(order.id)
    assert saved.execution_attempts == 2
    assert saved.last_error == "second"


@pytest.mark.asyncio
async def test_release_requires_claim(store):
    order = _order()
    await store.create(order)

    assert await store.release_claim(order.id, "boom") is None
    assert (await store.get(order.id)).execution_attempts == 0


@pytest.mark.asyncio
async def test_queries_filter_and_sort_newest_first(store):
    now = datetime.now()
    old = _order(created_at=now - timedelta(hours=1))
    new = _order(created_at=now)
    stop = _order(
        kind=OrderKind.STOP_LOSS,
        trigger_direction=TriggerDirection.BELOW,
        owner_wallet="7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU",
        status=OrderStatus.CANCELLED,
    )
    for order in (old, new, stop):
        await store.create(order)

    assert [o.id for o in await store.get_by_status(OrderStatus.ACTIVE)] == [new.id, old.id]
    assert [o.id for o in await store.get_by_kind(OrderKind.STOP_LOSS)] == [stop.id]
    assert [o.id for o in await store.get_by_wallet(stop.owner_wallet)] == [stop.id]
    assert len(await store.get_by_pair(old.pair_address)) == 3


@pytest.mark.asyncio
async def test_delete(store):
    order = _order(status=OrderStatus.CANCELLED)
    await store.create(order)

    assert await store.delete(order.id)
    assert not await store.delete(order.id)
    assert await store.get(order.id) is None


@pytest.mark.asyncio
async def test_record_signature_only_while_claimed(store):
    claimed = _order(status=OrderStatus.CLAIMED)
    active = _order()
    await store.create(claimed)
    await store.create(active)

    assert await store.record_signature(claimed.id, "sig")
    assert not await store.record_signature(active.id, "sig")

    saved = await store.get(claimed.id)
    assert saved.tx_signature == "sig"
    assert saved.updated_at == claimed.updated_at


@pytest.mark.asyncio
async def test_release_claim_drops_signature_unless_failed(store):
    retried = _order(status=OrderStatus.CLAIMED, tx_signature="sig-1")
    failed = _order(status=OrderStatus.CLAIMED, tx_signature="sig-2")
    await store.create(retried)
    await store.create(failed)

    await store.release_claim(retried.id, "boom", max_attempts=5)
    await store.release_claim(failed.id, "boom", max_attempts=1)

    assert (await store.get(retried.id)).tx_signature is None
    assert (await store.get(failed.id)).tx_signature == "sig-2"


@pytest.mark.asyncio
async def test_get_stale_claims(store):
    now = datetime.now()
    stale = _order(status=OrderStatus.CLAIMED, updated_at=now - timedelta(minutes=2))
    recent = _order(status=OrderStatus.CLAIMED, updated_at=now)
    old_active = _order(updated_at=now - timedelta(minutes=2))
    for order in (stale, recent, old_active):
        await store.create(order)

    claims = await store.get_stale_claims(now - timedelta(minutes=1))

    assert [o.id for o in claims] == [stale.id]
