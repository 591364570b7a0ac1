import asyncio
import logging
import time
from typing import Optional, Dict, Any

import httpx

from src.commons.enums.order_enums import DLMMMode
from src.commons.utils.units import to_base_units
from src.domain.orders.dtos.order_dto import OrderDTO
from src.domain.orders.dtos.swap_dto import SwapTransactionDTO
from src.domain.orders.exceptions import ExecutionFailure
from src.infrastructure.broker.swap_base import SwapBroadcaster

logger = logging.getLogger(__name__)


class RelayerSwapBroadcaster(SwapBroadcaster):
    """
    Talks to a signing relayer that owns the delegated wallet authority.

    - POST /swap/build          -> {"transaction": "<base64>"}
    - POST /transactions        -> {"signature": "<sig>"}
    - GET  /transactions/{sig}  -> {"status": "pending|confirmed|failed"}
    """

    BUILD_ENDPOINT = "/swap/build"
    SUBMIT_ENDPOINT = "/transactions"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        mode: DLMMMode = DLMMMode.DEVNET,
        token_decimals: int = 6,
        poll_interval: float = 2.0,
        confirm_timeout: float = 60.0,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.mode = mode
        self.token_decimals = token_decimals
        self.poll_interval = poll_interval
        self.confirm_timeout = confirm_timeout

        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------
    async def build_swap(
        self,
        order: OrderDTO,
        amount_in: float,
        min_amount_out: float,
    ) -> SwapTransactionDTO:
        payload = {
            "mode": self.mode.value,
            "pair": order.pair_address,
            "tokenMintX": order.token_from,
            "tokenMintY": order.token_to,
            "amount": str(to_base_units(amount_in, self.token_decimals)),
            "otherAmountOffset": str(
                to_base_units(min_amount_out, self.token_decimals, round_down=True)
            ),
            "isExactInput": True,
            "swapForY": order.swap_for_y,
            "payer": order.owner_wallet,
        }
        data = await self._request("POST", self.BUILD_ENDPOINT, "build", json=payload)

        transaction = data.get("transaction")
        if not transaction:
            raise ExecutionFailure(
                f"Relayer returned no transaction for order {order.id}"
            )

        return SwapTransactionDTO(
            order_id=order.id,
            pair_address=order.pair_address,
            token_from=order.token_from,
            token_to=order.token_to,
            amount_in=amount_in,
            min_amount_out=min_amount_out,
            payer=order.owner_wallet,
            swap_for_y=order.swap_for_y,
            payload=transaction,
        )

    # ------------------------------------------------------------------
    # Submit / confirm
    # ------------------------------------------------------------------
    async def submit(self, txn: SwapTransactionDTO) -> str:
        data = await self._request(
            "POST",
            self.SUBMIT_ENDPOINT,
            "submit",
            json={"transaction": txn.payload, "orderId": str(txn.order_id)},
        )
        signature = data.get("signature")
        if not signature:
            raise ExecutionFailure(
                f"Relayer returned no signature for order {txn.order_id}"
            )
        logger.info(f"Swap for order {txn.order_id} submitted: {signature}")
        return signature

    async def confirm(self, signature: str) -> bool:
        deadline = time.monotonic() + self.confirm_timeout

        while True:
            data = await self._request(
                "GET", f"{self.SUBMIT_ENDPOINT}/{signature}", "confirm"
            )
            status = data.get("status")

            if status == "confirmed":
                return True
            if status == "failed":
                logger.warning(
                    f"Transaction {signature} failed: {data.get('error')}"
                )
                return False
            if time.monotonic() >= deadline:
                raise ExecutionFailure(
                    f"Transaction {signature} not confirmed after {self.confirm_timeout}s"
                )

            await asyncio.sleep(self.poll_interval)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _request(self, method: str, url: str, stage: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Relayer {stage} failed with status {e.response.status_code}: "
                f"{e.response.text}"
            )
            raise ExecutionFailure(f"Relayer {stage} error: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Relayer {stage} request failed: {e}")
            raise ExecutionFailure(f"Relayer {stage} unreachable: {e}") from e
