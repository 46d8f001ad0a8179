"""
dogechain.info UTXO indexer backend.

Endpoints used:
- GET /api/v1/address/unspent/{address}/{page}
- GET /api/v1/block/besthash
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from dogwallet.backends.base import UtxoIndexer
from dogwallet.errors import IndexerError
from dogwallet.models import Utxo

DEFAULT_TIMEOUT = 30.0


class DogechainBackend(UtxoIndexer):
    def __init__(
        self,
        base_url: str = "https://dogechain.info",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _api_call(self, endpoint: str) -> dict[str, Any]:
        """
        GET an API endpoint and return its JSON body.

        Raises:
            IndexerError: On transport errors, HTTP errors, malformed JSON or
                a body whose "success" flag is not set
        """
        url = f"{self.base_url}/api/v1/{endpoint}"

        try:
            response = await self.client.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"dogechain API call failed: {endpoint} - {e}")
            raise IndexerError(f"dogechain.info request failed: {e}") from e
        except ValueError as e:
            logger.error(f"dogechain API returned invalid JSON: {endpoint} - {e}")
            raise IndexerError(f"dogechain.info returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or not data.get("success"):
            raise IndexerError(f"dogechain.info error for {endpoint}")

        return data

    async def get_unspent_page(self, address: str, page: int) -> list[Utxo]:
        data = await self._api_call(f"address/unspent/{address}/{page}")

        try:
            utxos = [
                Utxo(
                    txid=entry["tx_hash"],
                    vout=int(entry["tx_output_n"]),
                    script=entry["script"],
                    satoshis=int(entry["value"]),
                    confirmations=entry.get("confirmations"),
                )
                for entry in data.get("unspent_outputs", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise IndexerError(f"Malformed unspent output from dogechain.info: {e}") from e

        # The script is signed over when the output is spent
        for utxo in utxos:
            if not utxo.script:
                raise IndexerError(f"Unspent output {utxo.outpoint} has no script")

        logger.debug(f"Page {page}: {len(utxos)} unspent outputs")
        return utxos

    async def get_best_block_hash(self) -> str:
        data = await self._api_call("block/besthash")
        block_hash = data.get("hash")
        if not block_hash:
            raise IndexerError("dogechain.info returned no best block hash")
        return block_hash

    async def close(self) -> None:
        await self.client.aclose()
