"""
Doginals wallet service.

Ties the credential store, the UTXO reconciler, the inscription cache and the
transfer builder to one key-value store. Operations take the caller's
WalletState and return the updated state; calls on the same wallet must not
overlap.
"""

from __future__ import annotations

from loguru import logger

from dogwallet.backends.base import Broadcaster, ContentIndexClient, UtxoIndexer
from dogwallet.config import TransferConfig
from dogwallet.constants import (
    ACCEPTED_TERMS_KEY,
    DERIVATION_KEY,
    MNEMONIC_KEY,
    NUM_RETRIES,
    PRIVKEY_KEY,
)
from dogwallet.models import Credentials, Inscription, WalletState
from dogwallet.storage import KeyValueStore
from dogwallet.wallet.inscriptions import InscriptionCache
from dogwallet.wallet.keys import private_key_from_wif, private_key_to_wif
from dogwallet.wallet.reconciler import UtxoReconciler
from dogwallet.wallet.transfer import InscriptionSender


class WalletService:
    def __init__(
        self,
        store: KeyValueStore,
        indexer: UtxoIndexer,
        content_index: ContentIndexClient,
        broadcaster: Broadcaster,
        transfer_config: TransferConfig | None = None,
        num_retries: int = NUM_RETRIES,
        retry_delay: float = 0.0,
    ):
        self.store = store
        self.indexer = indexer
        self.content_index = content_index
        self.broadcaster = broadcaster

        self.reconciler = UtxoReconciler(
            indexer, content_index, store, num_retries=num_retries, retry_delay=retry_delay
        )
        self.inscription_cache = InscriptionCache(content_index, store)
        self.sender = InscriptionSender(broadcaster, transfer_config)

    async def load(self) -> WalletState:
        """Build a wallet state from persisted credentials, terms and UTXOs."""
        state = WalletState()

        privkey = await self.store.get(PRIVKEY_KEY)
        if privkey:
            state.credentials = Credentials(
                private_key=private_key_from_wif(privkey),
                mnemonic=await self.store.get(MNEMONIC_KEY),
                derivation=await self.store.get(DERIVATION_KEY),
            )

        state.accepted_terms = bool(await self.store.get(ACCEPTED_TERMS_KEY))
        state.utxos = await self.reconciler.load_baseline()
        return state

    async def store_credentials(self, state: WalletState, credentials: Credentials) -> WalletState:
        await self.store.set(PRIVKEY_KEY, private_key_to_wif(credentials.private_key))
        await self.store.set(MNEMONIC_KEY, credentials.mnemonic)
        await self.store.set(DERIVATION_KEY, credentials.derivation)
        state.credentials = credentials
        logger.info(f"Stored credentials for {credentials.address}")
        return state

    async def accept_terms(self, state: WalletState) -> WalletState:
        await self.store.set(ACCEPTED_TERMS_KEY, True)
        state.accepted_terms = True
        return state

    async def refresh_utxos(self, state: WalletState) -> WalletState:
        if state.credentials is None:
            raise ValueError("Wallet has no credentials")

        confirmed, num_unconfirmed = await self.reconciler.refresh(state.credentials.address)
        state.utxos = confirmed
        state.num_unconfirmed = num_unconfirmed
        return state

    async def refresh_inscriptions(self, state: WalletState) -> WalletState:
        state.inscriptions = await self.inscription_cache.refresh(state.utxos or [])
        logger.info(f"Wallet holds {len(state.inscriptions)} inscription(s)")
        return state

    async def refresh(self, state: WalletState) -> WalletState:
        """Reconcile UTXOs, then inscriptions."""
        state = await self.refresh_utxos(state)
        return await self.refresh_inscriptions(state)

    async def get_inscription(self, inscription_id: str) -> Inscription | None:
        return await self.inscription_cache.get(inscription_id)

    async def send_inscription(
        self, state: WalletState, inscription: Inscription, destination: str
    ) -> str:
        return await self.sender.send_inscription(state, inscription, destination)

    async def reset(self) -> WalletState:
        """Forget credentials and every cached entry."""
        await self.store.clear()
        logger.warning("Wallet reset: all stored data cleared")
        return WalletState()

    async def close(self) -> None:
        """Close backend connections"""
        await self.indexer.close()
        await self.content_index.close()
        await self.broadcaster.close()
