"""
Declarative base for the order database.

Constraint and index names follow a fixed convention so that schema
migrations generate stable names on PostgreSQL.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, MetaData
from sqlalchemy.orm import declarative_base

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


class TimestampedModel(Base):
    """Rows carry creation and last-change timestamps set by the application."""
    __abstract__ = True

    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)
