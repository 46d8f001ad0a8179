"""
Wallet core: keys, reconciliation, inscription cache and transfers.
"""

from dogwallet.wallet.inscriptions import InscriptionCache
from dogwallet.wallet.reconciler import UtxoReconciler
from dogwallet.wallet.service import WalletService
from dogwallet.wallet.transfer import InscriptionSender

__all__ = [
    "InscriptionCache",
    "InscriptionSender",
    "UtxoReconciler",
    "WalletService",
]
