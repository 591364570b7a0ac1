import logging
from typing import Optional, Dict, Any

import httpx

from src.commons.enums.order_enums import DLMMMode
from src.commons.utils.units import from_base_units, to_base_units
from src.domain.orders.dtos.quote_dto import QuoteDTO
from src.domain.orders.exceptions import PricingUnavailable
from src.infrastructure.pricing.price_oracle_base import PriceOracle

logger = logging.getLogger(__name__)


class DLMMPriceOracle(PriceOracle):
    """
    Quotes swaps against a DLMM liquidity-book quote service.

    Amounts are exchanged with the service in base units (integers), using
    `token_decimals` for both sides of the pair.
    """

    QUOTE_ENDPOINT = "/quote"

    def __init__(
        self,
        base_url: str,
        mode: DLMMMode = DLMMMode.DEVNET,
        token_decimals: int = 6,
        slippage_pct: float = 0.5,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.mode = mode
        self.token_decimals = token_decimals
        self.slippage_pct = slippage_pct
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=httpx.AsyncHTTPTransport(retries=3),
        )

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------
    async def quote(
        self,
        pair_address: str,
        token_from: str,
        token_to: str,
        amount_in: float,
        swap_for_y: bool = True,
    ) -> QuoteDTO:
        base_amount = self._to_base_units(amount_in)
        if base_amount <= 0:
            raise PricingUnavailable(
                f"Amount {amount_in} is below one base unit for pair {pair_address}"
            )

        payload = {
            "mode": self.mode.value,
            "pair": pair_address,
            "tokenBase": token_from,
            "tokenQuote": token_to,
            "amount": str(base_amount),
            "isExactInput": True,
            "swapForY": swap_for_y,
            "tokenBaseDecimal": self.token_decimals,
            "tokenQuoteDecimal": self.token_decimals,
            "slippage": self.slippage_pct,
        }

        try:
            response = await self.client.post(self.QUOTE_ENDPOINT, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Quote request for {pair_address} failed with status "
                f"{e.response.status_code}"
            )
            raise PricingUnavailable(f"Quote service error: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Quote request for {pair_address} failed: {e}")
            raise PricingUnavailable(f"Quote service unreachable: {e}") from e

        return self._map_quote(data, amount_in, pair_address)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _to_base_units(self, amount: float) -> int:
        return to_base_units(amount, self.token_decimals)

    def _from_base_units(self, amount: int) -> float:
        return from_base_units(amount, self.token_decimals)

    def _map_quote(self, data: Dict[str, Any], amount_in: float, pair_address: str) -> QuoteDTO:
        try:
            amount_out = self._from_base_units(int(data["amountOut"]))
        except (KeyError, TypeError, ValueError) as e:
            raise PricingUnavailable(
                f"Malformed quote payload for pair {pair_address}: {data!r}"
            ) from e

        if amount_out <= 0:
            raise PricingUnavailable(f"Pool {pair_address} returned an empty quote")

        return QuoteDTO(amount_in=amount_in, amount_out=amount_out)
