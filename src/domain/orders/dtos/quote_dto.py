from pydantic import BaseModel, Field


class QuoteDTO(BaseModel):
    """Point-in-time quote for selling `amount_in` of token_from."""

    amount_in: float = Field(..., gt=0.0)
    amount_out: float = Field(..., ge=0.0)

    @property
    def exchange_rate(self) -> float:
        return self.amount_out / self.amount_in
