"""
Trigger evaluation.

Pure decision functions: an order plus an observed price gives a
fire / no-fire answer. Nothing here touches the store or the network.
"""

from src.commons.enums.order_enums import OrderStatus, TriggerDirection
from src.domain.orders.dtos.order_dto import OrderDTO


def price_crosses(direction: TriggerDirection, price: float, target_price: float) -> bool:
    if direction == TriggerDirection.ABOVE:
        return price >= target_price
    if direction == TriggerDirection.BELOW:
        return price <= target_price
    return False


def should_execute(order: OrderDTO, price: float) -> bool:
    """
    Decide whether `order` fires at `price`.

    Limit orders default to ABOVE (price >= target) and stop-loss orders to
    BELOW (price <= target). A non-positive price means no valid
    observation and never fires.
    """
    if order.status not in (OrderStatus.ACTIVE, OrderStatus.CLAIMED):
        return False
    if price is None or price <= 0:
        return False
    return price_crosses(order.trigger_direction, price, order.target_price)
