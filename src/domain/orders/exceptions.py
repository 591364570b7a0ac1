from typing import Optional
from uuid import UUID


class OrderEngineError(Exception):
    """Base error for the order engine."""
    pass


class OrderValidationError(OrderEngineError):
    """Malformed order request. The order is never persisted."""
    pass


class OrderNotFoundError(OrderValidationError):
    def __init__(self, order_id: UUID):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class OrderNotCancellableError(OrderValidationError):
    def __init__(self, order_id: UUID, status: Optional[str] = None):
        detail = f" (status={status})" if status else ""
        super().__init__(f"Order {order_id} is not cancellable{detail}")
        self.order_id = order_id
        self.status = status


class PricingUnavailable(OrderEngineError):
    """The oracle could not quote the pair this cycle."""
    pass


class ExecutionFailure(OrderEngineError):
    """Swap build, broadcast or confirmation failed."""
    pass


class PersistenceError(OrderEngineError):
    """The order store could not be reached or rejected the operation."""
    pass
