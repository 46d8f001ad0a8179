"""
Wallet error taxonomy.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for all wallet errors."""


class IndexerError(WalletError):
    """A remote indexing service failed or returned an unusable response."""


class OutOfSyncError(WalletError):
    """The content indexer has not ingested the UTXO indexer's best block."""


class InscriptionNotFoundError(WalletError):
    pass


class MultiInscriptionOutputError(WalletError):
    pass


class UtxoNotFoundError(WalletError):
    pass


class InsufficientFundsError(WalletError):
    pass


class BroadcastError(WalletError):
    """The broadcast service rejected the transaction."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TransactionSigningError(WalletError):
    pass


class CredentialsError(WalletError):
    """Invalid private key, mnemonic or address."""
