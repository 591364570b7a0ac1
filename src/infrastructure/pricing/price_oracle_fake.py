import asyncio
from typing import Dict, List, Optional, Tuple

from src.domain.orders.dtos.quote_dto import QuoteDTO
from src.domain.orders.exceptions import PricingUnavailable
from src.infrastructure.pricing.price_oracle_base import PriceOracle


class FakePriceOracle(PriceOracle):
    """
    Fake oracle que:
    - cotiza con un precio fijo por pair (set_price)
    - puede fallar N veces seguidas por pair (fail_next)
    - registra cada llamada para los tests
    """

    def __init__(
        self,
        prices: Optional[Dict[str, float]] = None,
        default_price: Optional[float] = None,
    ):
        self._prices: Dict[str, float] = dict(prices or {})
        self._default_price = default_price
        self._failures: Dict[str, int] = {}
        self.calls: List[Tuple[str, float]] = []

    def set_price(self, pair_address: str, price: float) -> None:
        self._prices[pair_address] = price

    def fail_next(self, pair_address: str, times: int = 1) -> None:
        self._failures[pair_address] = self._failures.get(pair_address, 0) + times

    async def quote(
        self,
        pair_address: str,
        token_from: str,
        token_to: str,
        amount_in: float,
        swap_for_y: bool = True,
    ) -> QuoteDTO:
        await asyncio.sleep(0)
        self.calls.append((pair_address, amount_in))

        pending = self._failures.get(pair_address, 0)
        if pending > 0:
            self._failures[pair_address] = pending - 1
            raise PricingUnavailable(f"Fake oracle failure for {pair_address}")

        price = self._prices.get(pair_address, self._default_price)
        if price is None or price <= 0:
            raise PricingUnavailable(f"No fake price configured for {pair_address}")

        return QuoteDTO(amount_in=amount_in, amount_out=amount_in * price)

    async def close(self) -> None:
        return None
