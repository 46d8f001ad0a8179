"""
Shared fixtures for dogwallet tests.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from coincurve import PrivateKey

from dogwallet.backends.base import (
    Broadcaster,
    ContentIndexClient,
    InscriptionMetadata,
    UtxoIndexer,
)
from dogwallet.models import Credentials, Utxo
from dogwallet.storage import MemoryStore
from dogwallet.wallet.keys import (
    address_to_script,
    credentials_from_mnemonic,
    private_key_to_address,
)


@pytest.fixture
def sample_mnemonic() -> str:
    """Test mnemonic (not for production use!)."""
    return (
        "abandon abandon abandon abandon abandon abandon "
        "abandon abandon abandon abandon abandon about"
    )


@pytest.fixture
def credentials(sample_mnemonic: str) -> Credentials:
    return credentials_from_mnemonic(sample_mnemonic)


@pytest.fixture
def wallet_script(credentials: Credentials) -> str:
    """Hex scriptPubKey paying the test wallet."""
    return address_to_script(credentials.address).hex()


@pytest.fixture
def destination() -> str:
    """An address that does not belong to the test wallet."""
    return private_key_to_address(PrivateKey(b"\x01" * 32))


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_utxo(wallet_script: str) -> Callable[..., Utxo]:
    """Factory for wallet UTXOs with a 64-hex txid built from a repeated byte."""

    def _make(
        txid_byte: str = "aa",
        vout: int = 0,
        satoshis: int = 1_000_000,
        confirmations: int | None = 20,
    ) -> Utxo:
        return Utxo(
            txid=txid_byte * 32,
            vout=vout,
            script=wallet_script,
            satoshis=satoshis,
            confirmations=confirmations,
        )

    return _make


@pytest.fixture
def mock_indexer() -> MagicMock:
    indexer = MagicMock(spec=UtxoIndexer)
    indexer.get_unspent_page = AsyncMock(return_value=[])
    indexer.get_best_block_hash = AsyncMock(return_value="00" * 32)
    indexer.close = AsyncMock()
    return indexer


@pytest.fixture
def mock_content_index() -> MagicMock:
    content_index = MagicMock(spec=ContentIndexClient)
    content_index.has_block = AsyncMock(return_value=True)
    content_index.list_inscriptions_at_output = AsyncMock(return_value=[])
    content_index.fetch_inscription_content = AsyncMock(
        return_value="data:text/plain;charset=utf-8;base64,aGVsbG8="
    )
    content_index.fetch_inscription_metadata = AsyncMock(
        return_value=InscriptionMetadata(number="1234")
    )
    content_index.close = AsyncMock()
    return content_index


@pytest.fixture
def mock_broadcaster() -> MagicMock:
    broadcaster = MagicMock(spec=Broadcaster)
    broadcaster.broadcast_transaction = AsyncMock(return_value=None)
    broadcaster.close = AsyncMock()
    return broadcaster
