"""
Remote service backends.

Available backends:
- DogechainBackend: UTXO listing and best block hash (dogechain.info)
- DoginalsClient: inscription index and content (doginals.com)
- BlockchairBroadcaster: transaction push (api.blockchair.com)
"""

from dogwallet.backends.base import (
    Broadcaster,
    ContentIndexClient,
    InscriptionMetadata,
    UtxoIndexer,
)
from dogwallet.backends.blockchair import BlockchairBroadcaster
from dogwallet.backends.dogechain import DogechainBackend
from dogwallet.backends.doginals import DoginalsClient

__all__ = [
    "BlockchairBroadcaster",
    "Broadcaster",
    "ContentIndexClient",
    "DogechainBackend",
    "DoginalsClient",
    "InscriptionMetadata",
    "UtxoIndexer",
]
