"""
UTXO reconciliation against the remote indexers.
"""

from __future__ import annotations

from loguru import logger

from dogwallet.backends.base import ContentIndexClient, UtxoIndexer
from dogwallet.constants import NUM_RETRIES, UTXOS_KEY
from dogwallet.errors import OutOfSyncError
from dogwallet.models import Utxo
from dogwallet.retry import retry_async
from dogwallet.storage import KeyValueStore


class UtxoReconciler:
    """
    Rebuilds the confirmed UTXO set of an address.

    The confirmed set is only persisted after the content indexer confirms it
    has ingested the UTXO indexer's best block. Otherwise inscription
    discovery could run against outputs the content indexer has not seen and
    report them as empty.
    """

    def __init__(
        self,
        indexer: UtxoIndexer,
        content_index: ContentIndexClient,
        store: KeyValueStore,
        num_retries: int = NUM_RETRIES,
        retry_delay: float = 0.0,
    ):
        self.indexer = indexer
        self.content_index = content_index
        self.store = store
        self.num_retries = num_retries
        self.retry_delay = retry_delay

    async def fetch_all_utxos(self, address: str) -> list[Utxo]:
        """Page through the unspent listing until an empty page."""
        utxos: list[Utxo] = []
        page = 1

        while True:
            partial = await retry_async(
                lambda page=page: self.indexer.get_unspent_page(address, page),
                attempts=self.num_retries,
                delay=self.retry_delay,
                description=f"Unspent output page {page}",
            )
            if not partial:
                break
            utxos.extend(partial)
            page += 1

        logger.debug(f"Fetched {len(utxos)} unspent outputs in {page} page(s)")
        return utxos

    async def load_baseline(self) -> list[Utxo] | None:
        stored = await self.store.get(UTXOS_KEY)
        if stored is None:
            return None
        return [Utxo.model_validate(u) for u in stored]

    async def check_in_sync(self) -> None:
        """
        Raise OutOfSyncError unless the content indexer has the UTXO
        indexer's best block.
        """
        best_hash = await self.indexer.get_best_block_hash()
        if not await self.content_index.has_block(best_hash):
            logger.warning(f"Content indexer has not ingested block {best_hash}")
            raise OutOfSyncError("doginals indexer is out of sync")

    async def refresh(self, address: str) -> tuple[list[Utxo], int]:
        """
        Fetch the current UTXO set for an address.

        Returns:
            (confirmed UTXOs sorted newest first, number of unconfirmed UTXOs)

        Raises:
            IndexerError: A page kept failing after all retries
            OutOfSyncError: The content indexer is behind the UTXO indexer
        """
        utxos = await self.fetch_all_utxos(address)

        # Newest first: fewer confirmations means more recent
        utxos.sort(key=lambda u: u.confirmations or 0)

        for utxo in utxos:
            logger.debug(f"{utxo.outpoint} (sats={utxo.satoshis} confs={utxo.confirmations})")

        # Unconfirmed outputs are not indexed yet
        unconfirmed = [u for u in utxos if not u.confirmations]
        confirmed = [u for u in utxos if u.confirmations and u.confirmations > 0]

        baseline = await self.load_baseline()
        if baseline == confirmed:
            logger.debug("Confirmed UTXO set unchanged")
            return confirmed, len(unconfirmed)

        await self.check_in_sync()

        await self.store.set(UTXOS_KEY, [u.model_dump() for u in confirmed])
        logger.info(
            f"UTXO set updated: {len(confirmed)} confirmed, {len(unconfirmed)} unconfirmed"
        )
        return confirmed, len(unconfirmed)
