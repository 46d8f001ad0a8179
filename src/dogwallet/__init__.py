"""
dogwallet - Dogecoin wallet for doginals (inscriptions)

Reconciles UTXOs against remote indexers, caches inscriptions and sends them
in transfers that never spend other inscriptions as fee inputs.
"""

__version__ = "0.1.0"

from dogwallet.constants import DUST_AMOUNT
from dogwallet.errors import (
    BroadcastError,
    CredentialsError,
    IndexerError,
    InscriptionNotFoundError,
    InsufficientFundsError,
    MultiInscriptionOutputError,
    OutOfSyncError,
    UtxoNotFoundError,
    WalletError,
)
from dogwallet.models import Credentials, Inscription, Utxo, WalletState, describe_inscription

__all__ = [
    "DUST_AMOUNT",
    "BroadcastError",
    "Credentials",
    "CredentialsError",
    "IndexerError",
    "Inscription",
    "InscriptionNotFoundError",
    "InsufficientFundsError",
    "MultiInscriptionOutputError",
    "OutOfSyncError",
    "Utxo",
    "UtxoNotFoundError",
    "WalletError",
    "WalletState",
    "describe_inscription",
]
