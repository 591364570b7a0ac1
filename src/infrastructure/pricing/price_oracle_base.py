from typing import Protocol

from src.domain.orders.dtos.quote_dto import QuoteDTO


class PriceOracle(Protocol):
    async def quote(
        self,
        pair_address: str,
        token_from: str,
        token_to: str,
        amount_in: float,
        swap_for_y: bool = True,
    ) -> QuoteDTO:
        """
        Devuelve una cotización puntual para vender `amount_in` de token_from.
        Lanza PricingUnavailable si el pool no puede cotizar.
        """
        ...

    async def close(self) -> None: ...
