from .base import Base, TimestampedModel
from .order_model import OrderModel


__all__ = ["Base", "TimestampedModel", "OrderModel"]
