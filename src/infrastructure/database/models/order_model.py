"""
Order Database Model

SQLAlchemy model for conditional orders.
"""

from sqlalchemy import Column, String, Float, Integer, Boolean, DateTime, Text, Enum as SQLEnum
from uuid import uuid4

from src.commons.enums.order_enums import OrderKind, OrderStatus, TriggerDirection
from src.infrastructure.database.models.base import TimestampedModel


class OrderModel(TimestampedModel):
    """Conditional order database model."""

    __tablename__ = 'orders'

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    kind = Column(SQLEnum(OrderKind), nullable=False)
    trigger_direction = Column(SQLEnum(TriggerDirection), nullable=False)
    token_from = Column(String, nullable=False)
    token_to = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    target_price = Column(Float, nullable=False)
    current_price = Column(Float, nullable=False, default=0.0)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.ACTIVE, index=True)
    pair_address = Column(String, nullable=False, index=True)
    swap_for_y = Column(Boolean, nullable=False, default=True)
    owner_wallet = Column(String, nullable=False, index=True)
    slippage_bps = Column(Integer, nullable=False, default=50)
    execution_attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    tx_signature = Column(String, nullable=True)
    executed_at = Column(DateTime, nullable=True)
