import asyncio

from src.domain.orders.dtos.quote_dto import QuoteDTO
from src.domain.orders.exceptions import PricingUnavailable
from src.infrastructure.pricing.price_oracle_base import PriceOracle


async def fetch_quote(
    oracle: PriceOracle,
    pair_address: str,
    token_from: str,
    token_to: str,
    amount_in: float,
    swap_for_y: bool = True,
    timeout: float = 10.0,
) -> QuoteDTO:
    """
    Quote with a deadline. A timeout is reported as PricingUnavailable.
    """
    try:
        return await asyncio.wait_for(
            oracle.quote(
                pair_address=pair_address,
                token_from=token_from,
                token_to=token_to,
                amount_in=amount_in,
                swap_for_y=swap_for_y,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise PricingUnavailable(
            f"Quote for pair {pair_address} timed out after {timeout}s"
        ) from e


async def spot_price(
    oracle: PriceOracle,
    pair_address: str,
    token_from: str,
    token_to: str,
    reference_amount: float = 1.0,
    swap_for_y: bool = True,
    timeout: float = 10.0,
) -> float:
    """Price of one reference amount of token_from, in token_to per unit."""
    quote = await fetch_quote(
        oracle,
        pair_address=pair_address,
        token_from=token_from,
        token_to=token_to,
        amount_in=reference_amount,
        swap_for_y=swap_for_y,
        timeout=timeout,
    )
    return quote.exchange_rate
