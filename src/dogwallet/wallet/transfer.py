"""
Inscription transfer builder.

A transfer spends the output holding the inscription first, so the
inscription lands in the first output (the recipient's). Fees and the
recipient's dust value are paid from the funding set: every confirmed output
that holds no known inscription. All of the funding set is spent and the
remainder returns as change.
"""

from __future__ import annotations

from loguru import logger

from dogwallet.backends.base import Broadcaster
from dogwallet.config import TransferConfig
from dogwallet.constants import P2PKH_INPUT_SIZE, P2PKH_OUTPUT_SIZE, TX_OVERHEAD_SIZE
from dogwallet.errors import (
    InscriptionNotFoundError,
    InsufficientFundsError,
    MultiInscriptionOutputError,
    UtxoNotFoundError,
)
from dogwallet.models import Credentials, Inscription, Utxo, WalletState
from dogwallet.wallet.keys import address_to_script
from dogwallet.wallet.transaction import Transaction, TxInput, TxOutput, sign_transaction


def estimate_tx_size(num_inputs: int, num_outputs: int) -> int:
    """Signed size of a P2PKH transaction with compressed keys."""
    return TX_OVERHEAD_SIZE + num_inputs * P2PKH_INPUT_SIZE + num_outputs * P2PKH_OUTPUT_SIZE


def calculate_fee(size: int, fee_per_kb: int) -> int:
    """Fee charged per started kilobyte."""
    return -(-size // 1000) * fee_per_kb


def select_funding_utxos(utxos: list[Utxo], inscriptions: dict[str, Inscription]) -> list[Utxo]:
    """Confirmed outputs that hold none of the known inscriptions."""
    occupied = {inscription.outpoint for inscription in inscriptions.values()}
    return [utxo for utxo in utxos if utxo.outpoint not in occupied]


def find_inscription_utxo(
    utxos: list[Utxo], inscriptions: dict[str, Inscription], inscription: Inscription
) -> Utxo:
    """
    Locate the output holding an inscription.

    Raises:
        InscriptionNotFoundError: No known inscription sits at that outpoint
        MultiInscriptionOutputError: Several known inscriptions share the outpoint
        UtxoNotFoundError: The outpoint is not a confirmed UTXO
    """
    count = sum(1 for entry in inscriptions.values() if entry.outpoint == inscription.outpoint)
    if count == 0:
        raise InscriptionNotFoundError(f"Inscription {inscription.id} not found")
    if count > 1:
        raise MultiInscriptionOutputError(
            f"Output {inscription.outpoint} holds {count} inscriptions; "
            "multi-inscription outputs are not supported"
        )

    for utxo in utxos:
        if utxo.outpoint == inscription.outpoint:
            return utxo

    raise UtxoNotFoundError(f"Inscription UTXO {inscription.outpoint} not found")


def _to_input(utxo: Utxo) -> TxInput:
    return TxInput(txid=utxo.txid, vout=utxo.vout, value=utxo.satoshis, scriptpubkey=utxo.script)


def build_transfer_tx(
    inscription_utxo: Utxo,
    funding_utxos: list[Utxo],
    destination: str,
    change_address: str,
    config: TransferConfig,
) -> Transaction:
    """
    Build the unsigned transfer.

    Inputs: inscription UTXO, then the whole funding set.
    Outputs: dust to the destination, then change if it is at least dust.

    Raises:
        InsufficientFundsError: Inputs cannot cover the dust output and fee
    """
    inputs = [_to_input(inscription_utxo)] + [_to_input(u) for u in funding_utxos]
    total_in = sum(inp.value for inp in inputs)

    outputs = [
        TxOutput(
            value=config.dust_amount, script=address_to_script(destination), address=destination
        )
    ]

    fee = calculate_fee(estimate_tx_size(len(inputs), 2), config.fee_per_kb)
    change = total_in - config.dust_amount - fee

    if change >= config.dust_amount:
        outputs.append(
            TxOutput(value=change, script=address_to_script(change_address), address=change_address)
        )
    else:
        # Sub-dust remainder is left to the fee
        fee = calculate_fee(estimate_tx_size(len(inputs), 1), config.fee_per_kb)
        if total_in < config.dust_amount + fee:
            raise InsufficientFundsError(
                f"Not enough funds: need {config.dust_amount + fee}, have {total_in}"
            )

    return Transaction(inputs=inputs, outputs=outputs)


def prepare_inscription_transfer(
    state: WalletState,
    inscription: Inscription,
    destination: str,
    config: TransferConfig,
) -> Transaction:
    """Select inputs, build and sign a transfer without broadcasting it."""
    credentials: Credentials | None = state.credentials
    if credentials is None:
        raise ValueError("Wallet has no credentials")

    utxos = state.utxos or []
    inscription_utxo = find_inscription_utxo(utxos, state.inscriptions, inscription)
    funding_utxos = select_funding_utxos(utxos, state.inscriptions)

    tx = build_transfer_tx(
        inscription_utxo, funding_utxos, destination, credentials.address, config
    )
    sign_transaction(tx, credentials.private_key)

    if tx.input_amount < tx.output_amount:
        raise InsufficientFundsError("Not enough funds")

    logger.debug(f"Funding UTXOs: {[u.outpoint for u in funding_utxos]}")
    logger.debug(
        f"Transfer tx {tx.txid}: {len(tx.inputs)} inputs, {len(tx.outputs)} outputs, fee {tx.fee}"
    )
    return tx


class InscriptionSender:
    """Builds, signs and broadcasts inscription transfers."""

    def __init__(self, broadcaster: Broadcaster, config: TransferConfig | None = None):
        self.broadcaster = broadcaster
        self.config = config or TransferConfig()

    async def send_inscription(
        self, state: WalletState, inscription: Inscription, destination: str
    ) -> str:
        """
        Transfer an inscription to destination.

        Returns:
            Transaction id

        Raises:
            InscriptionNotFoundError, MultiInscriptionOutputError,
            UtxoNotFoundError, InsufficientFundsError, BroadcastError
        """
        tx = prepare_inscription_transfer(state, inscription, destination, self.config)

        await self.broadcaster.broadcast_transaction(tx.to_hex())

        logger.info(f"Sent inscription {inscription.number} to {destination}: {tx.txid}")
        return tx.txid
