from enum import Enum


class OrderKind(str, Enum):
    LIMIT = "limit"
    STOP_LOSS = "stop_loss"


class TriggerDirection(str, Enum):
    """Side of the target price that fires the trigger."""
    ABOVE = "above"
    BELOW = "below"


class OrderStatus(str, Enum):
    ACTIVE = "active"
    CLAIMED = "claimed"
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.EXECUTED,
        OrderStatus.CANCELLED,
        OrderStatus.EXPIRED,
        OrderStatus.FAILED,
    }
)


class StoreBackend(str, Enum):
    SQL = "sql"
    MEMORY = "memory"


class PricingBackend(str, Enum):
    DLMM = "dlmm"
    FAKE = "fake"


class SwapBackend(str, Enum):
    RELAYER = "relayer"
    FAKE = "fake"


class DLMMMode(str, Enum):
    DEVNET = "devnet"
    MAINNET = "mainnet"
