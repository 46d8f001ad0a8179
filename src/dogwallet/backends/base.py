"""
Base interfaces for the remote services the wallet depends on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from dogwallet.models import Utxo


@dataclass
class InscriptionMetadata:
    """Display metadata scraped or queried for an inscription."""

    number: str


class UtxoIndexer(ABC):
    """
    Service listing the unspent outputs of an address.
    Also reports its view of the chain tip for the staleness check.
    """

    @abstractmethod
    async def get_unspent_page(self, address: str, page: int) -> list[Utxo]:
        """Get one page (1-based) of unspent outputs. An empty list ends the listing."""

    @abstractmethod
    async def get_best_block_hash(self) -> str:
        """Get the hash of the indexer's current best block"""

    async def close(self) -> None:
        pass


class ContentIndexClient(ABC):
    """
    Inscription indexer.

    Implementations may scrape HTML or call a structured API; the wallet only
    relies on the shapes below.
    """

    @abstractmethod
    async def has_block(self, block_hash: str) -> bool:
        """True if the indexer has ingested the given block"""

    @abstractmethod
    async def list_inscriptions_at_output(self, outpoint: str) -> list[str]:
        """Inscription ids held by an output ("txid:vout"), in display order"""

    @abstractmethod
    async def fetch_inscription_content(self, inscription_id: str) -> str:
        """Inscription content as a data URI carrying its mime type"""

    @abstractmethod
    async def fetch_inscription_metadata(self, inscription_id: str) -> InscriptionMetadata:
        """Display metadata for an inscription"""

    async def close(self) -> None:
        pass


class Broadcaster(ABC):
    @abstractmethod
    async def broadcast_transaction(self, tx_hex: str) -> None:
        """Submit a signed transaction, raising BroadcastError on rejection"""

    async def close(self) -> None:
        pass
