"""
Inscription discovery and content cache.

Two persisted layers:
- inscriptions_at_{outpoint}: ids found at an output
- inscription_{id}: content, number and outpoint of an inscription

Both are written once per key and never refreshed. Inscription content is
immutable, and an output's inscriptions cannot change while it is unspent.
"""

from __future__ import annotations

from loguru import logger

from dogwallet.backends.base import ContentIndexClient
from dogwallet.constants import SETTLED_CONFIRMATIONS, inscription_key, inscriptions_at_key
from dogwallet.models import Inscription, Utxo
from dogwallet.storage import KeyValueStore


class InscriptionCache:
    def __init__(self, content_index: ContentIndexClient, store: KeyValueStore):
        self.content_index = content_index
        self.store = store

    async def discover(self, utxos: list[Utxo]) -> tuple[list[str], list[str]]:
        """
        Find the inscriptions held by confirmed outputs.

        Outputs with a persisted index entry are not queried again. A fresh
        lookup is persisted when it found inscriptions or when the output has
        more than SETTLED_CONFIRMATIONS confirmations; empty results for
        younger outputs are re-checked next time in case the indexer lags.

        Returns:
            (inscription ids, outpoint of each id) as parallel lists
        """
        keys = [inscriptions_at_key(utxo.outpoint) for utxo in utxos]
        known = await self.store.get_many(keys)

        inscription_ids: list[str] = []
        inscription_outpoints: list[str] = []

        for utxo, key in zip(utxos, keys, strict=True):
            ids = known.get(key)

            if ids is None:
                ids = await self.content_index.list_inscriptions_at_output(utxo.outpoint)
                logger.debug(f"Output {utxo.outpoint}: {len(ids)} inscription(s)")

                if ids or (utxo.confirmations or 0) > SETTLED_CONFIRMATIONS:
                    await self.store.set(key, ids)

            for inscription_id in ids:
                inscription_ids.append(inscription_id)
                inscription_outpoints.append(utxo.outpoint)

        return inscription_ids, inscription_outpoints

    async def materialize(
        self, inscription_ids: list[str], inscription_outpoints: list[str]
    ) -> dict[str, Inscription]:
        """
        Load inscription records, downloading any that are not cached.

        Returns:
            Mapping of inscription id to Inscription, in discovery order
        """
        keys = [inscription_key(i) for i in inscription_ids]
        cached = await self.store.get_many(keys)

        inscriptions: dict[str, Inscription] = {}

        for inscription_id, outpoint, key in zip(
            inscription_ids, inscription_outpoints, keys, strict=True
        ):
            if inscription_id in inscriptions:
                # Listed at two outputs by a lagging indexer; first outpoint wins
                logger.warning(
                    f"Inscription {inscription_id} listed at {outpoint} and "
                    f"{inscriptions[inscription_id].outpoint}"
                )
                continue

            if key in cached:
                inscription = Inscription.model_validate(cached[key])
                if inscription.outpoint != outpoint:
                    # Moved between our own outputs; content stays cached
                    logger.debug(f"Inscription {inscription_id} moved to {outpoint}")
                    inscription = inscription.model_copy(update={"outpoint": outpoint})
                    await self.store.set(key, inscription.model_dump())
                inscriptions[inscription_id] = inscription
                continue

            data = await self.content_index.fetch_inscription_content(inscription_id)
            metadata = await self.content_index.fetch_inscription_metadata(inscription_id)

            inscription = Inscription(
                id=inscription_id,
                data=data,
                outpoint=outpoint,
                number=metadata.number,
            )
            await self.store.set(key, inscription.model_dump())
            inscriptions[inscription_id] = inscription
            logger.info(f"Cached inscription {metadata.number} ({inscription.content_type})")

        return inscriptions

    async def refresh(self, utxos: list[Utxo]) -> dict[str, Inscription]:
        inscription_ids, inscription_outpoints = await self.discover(utxos)
        return await self.materialize(inscription_ids, inscription_outpoints)

    async def get(self, inscription_id: str) -> Inscription | None:
        stored = await self.store.get(inscription_key(inscription_id))
        if stored is None:
            return None
        return Inscription.model_validate(stored)
