"""
Blockchair transaction broadcaster.
"""

from __future__ import annotations

import httpx
from loguru import logger

from dogwallet.backends.base import Broadcaster
from dogwallet.errors import BroadcastError

DEFAULT_TIMEOUT = 30.0


def rejection_message(response: httpx.Response) -> str:
    """
    Error text for a rejected push.

    Prefers Blockchair's structured ``context.error``, falling back to the
    status line.
    """
    fallback = f"{response.status_code}: {response.reason_phrase}"
    try:
        data = response.json()
    except ValueError:
        return fallback

    context = data.get("context") if isinstance(data, dict) else None
    if isinstance(context, dict) and context.get("error"):
        return str(context["error"])
    return fallback


class BlockchairBroadcaster(Broadcaster):
    def __init__(
        self,
        base_url: str = "https://api.blockchair.com",
        chain: str = "dogecoin",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.chain = chain
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def broadcast_transaction(self, tx_hex: str) -> None:
        url = f"{self.base_url}/{self.chain}/push/transaction"

        try:
            response = await self.client.post(
                url,
                json={"data": tx_hex},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to broadcast transaction: {e}")
            raise BroadcastError(f"Broadcast failed: {e}") from e

        if response.status_code != 200:
            message = rejection_message(response)
            logger.error(f"Broadcast rejected: {message}")
            raise BroadcastError(message, status_code=response.status_code)

        logger.info("Transaction accepted by broadcast service")

    async def close(self) -> None:
        await self.client.aclose()
