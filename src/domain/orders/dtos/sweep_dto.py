from datetime import datetime

from pydantic import BaseModel, Field


class SweepResultDTO(BaseModel):
    """Counters for one monitor tick."""

    started_at: datetime = Field(default_factory=datetime.now)
    checked: int = 0
    priced: int = 0
    triggered: int = 0
    executed: int = 0
    expired: int = 0
    recovered: int = 0
    failed: int = 0
