"""
Tests for the inscription transfer builder.
"""

from __future__ import annotations

import pytest
from coincurve import PublicKey

from dogwallet.config import TransferConfig
from dogwallet.constants import DUST_AMOUNT
from dogwallet.errors import (
    BroadcastError,
    InscriptionNotFoundError,
    InsufficientFundsError,
    MultiInscriptionOutputError,
    UtxoNotFoundError,
)
from dogwallet.models import Inscription, WalletState
from dogwallet.wallet.keys import address_to_script
from dogwallet.wallet.transaction import compute_sighash_legacy
from dogwallet.wallet.transfer import (
    InscriptionSender,
    build_transfer_tx,
    calculate_fee,
    estimate_tx_size,
    prepare_inscription_transfer,
    select_funding_utxos,
)


def _inscription(inscription_id: str, outpoint: str) -> Inscription:
    return Inscription(
        id=inscription_id, data="data:text/plain;base64,aGk=", outpoint=outpoint, number="1"
    )


@pytest.fixture
def inscribed_utxo(make_utxo):
    return make_utxo("aa", vout=0, satoshis=1_000_000, confirmations=30)


@pytest.fixture
def funding_utxo(make_utxo):
    return make_utxo("bb", vout=1, satoshis=6_000_000, confirmations=12)


@pytest.fixture
def state(credentials, inscribed_utxo, funding_utxo):
    inscription = _inscription("targeti0", inscribed_utxo.outpoint)
    return WalletState(
        credentials=credentials,
        accepted_terms=True,
        utxos=[funding_utxo, inscribed_utxo],
        inscriptions={inscription.id: inscription},
    )


class TestFees:
    def test_size_estimate(self):
        assert estimate_tx_size(2, 2) == 10 + 2 * 148 + 2 * 34

    def test_fee_per_started_kilobyte(self):
        assert calculate_fee(0, 1_000_000) == 0
        assert calculate_fee(1, 1_000_000) == 1_000_000
        assert calculate_fee(1000, 1_000_000) == 1_000_000
        assert calculate_fee(1001, 1_000_000) == 2_000_000


class TestInputSelection:
    def test_funding_excludes_inscribed_outputs(self, make_utxo):
        plain = make_utxo("aa")
        inscribed = make_utxo("bb")
        inscriptions = {"xi0": _inscription("xi0", inscribed.outpoint)}

        assert select_funding_utxos([plain, inscribed], inscriptions) == [plain]

    def test_other_inscriptions_are_never_spent(self, state, make_utxo, destination):
        """Only the transferred inscription's output is spent among inscribed outputs."""
        other = make_utxo("cc", vout=2, satoshis=5_000_000, confirmations=50)
        state.utxos.append(other)
        state.inscriptions["otheri0"] = _inscription("otheri0", other.outpoint)

        tx = prepare_inscription_transfer(
            state, state.inscriptions["targeti0"], destination, TransferConfig()
        )

        spent = {f"{inp.txid}:{inp.vout}" for inp in tx.inputs}
        assert other.outpoint not in spent
        assert spent == {f"{'aa' * 32}:0", f"{'bb' * 32}:1"}


class TestBuildTransfer:
    def test_layout_and_amounts(self, state, credentials, destination):
        """Inscription input first, dust to the destination first, change back to us."""
        tx = prepare_inscription_transfer(
            state, state.inscriptions["targeti0"], destination, TransferConfig()
        )

        assert tx.inputs[0].txid == "aa" * 32
        assert tx.inputs[0].vout == 0
        assert tx.input_amount == 7_000_000

        assert len(tx.outputs) == 2
        assert tx.outputs[0].value == DUST_AMOUNT
        assert tx.outputs[0].script == address_to_script(destination)
        assert tx.outputs[1].value == 5_000_000
        assert tx.outputs[1].script == address_to_script(credentials.address)
        assert tx.fee == 1_000_000

    def test_inputs_are_signed(self, state, destination):
        tx = prepare_inscription_transfer(
            state, state.inscriptions["targeti0"], destination, TransferConfig()
        )

        assert tx.is_fully_signed()
        for i, inp in enumerate(tx.inputs):
            sig_len = inp.script_sig[0]
            signature = inp.script_sig[1 : 1 + sig_len]
            pubkey = inp.script_sig[2 + sig_len :]
            sighash = compute_sighash_legacy(tx, i)
            assert PublicKey(pubkey).verify(signature[:-1], sighash, hasher=None)

    def test_sub_dust_change_goes_to_fee(self, inscribed_utxo, make_utxo, credentials, destination):
        funding = make_utxo("bb", vout=1, satoshis=1_500_000)

        tx = build_transfer_tx(
            inscribed_utxo, [funding], destination, credentials.address, TransferConfig()
        )

        assert len(tx.outputs) == 1
        assert tx.outputs[0].value == DUST_AMOUNT
        assert tx.fee == 1_500_000

    def test_change_exactly_dust_is_kept(
        self, inscribed_utxo, make_utxo, credentials, destination
    ):
        funding = make_utxo("bb", vout=1, satoshis=2_000_000)

        tx = build_transfer_tx(
            inscribed_utxo, [funding], destination, credentials.address, TransferConfig()
        )

        assert [out.value for out in tx.outputs] == [DUST_AMOUNT, DUST_AMOUNT]
        assert tx.fee == 1_000_000

    def test_insufficient_funds(self, credentials, inscribed_utxo, destination):
        """The inscription output alone cannot pay for its own transfer."""
        inscription = _inscription("targeti0", inscribed_utxo.outpoint)
        state = WalletState(
            credentials=credentials,
            utxos=[inscribed_utxo],
            inscriptions={inscription.id: inscription},
        )

        with pytest.raises(InsufficientFundsError):
            prepare_inscription_transfer(state, inscription, destination, TransferConfig())

    def test_custom_fee_rate(self, state, destination):
        tx = prepare_inscription_transfer(
            state,
            state.inscriptions["targeti0"],
            destination,
            TransferConfig(fee_per_kb=2_000_000),
        )
        assert tx.fee == 2_000_000
        assert tx.outputs[1].value == 4_000_000


class TestPreconditions:
    def test_inscription_not_found(self, state, destination):
        unknown = _inscription("unknowni0", f"{'dd' * 32}:0")
        with pytest.raises(InscriptionNotFoundError):
            prepare_inscription_transfer(state, unknown, destination, TransferConfig())

    def test_multi_inscription_output(self, state, inscribed_utxo, destination):
        state.inscriptions["siblingi0"] = _inscription("siblingi0", inscribed_utxo.outpoint)

        with pytest.raises(MultiInscriptionOutputError):
            prepare_inscription_transfer(
                state, state.inscriptions["targeti0"], destination, TransferConfig()
            )

    def test_utxo_not_found(self, state, funding_utxo, destination):
        """The inscription is known but its output is no longer unspent."""
        state.utxos = [funding_utxo]

        with pytest.raises(UtxoNotFoundError):
            prepare_inscription_transfer(
                state, state.inscriptions["targeti0"], destination, TransferConfig()
            )

    def test_no_credentials(self, state, destination):
        state.credentials = None
        with pytest.raises(ValueError, match="credentials"):
            prepare_inscription_transfer(
                state, state.inscriptions["targeti0"], destination, TransferConfig()
            )


class TestInscriptionSender:
    @pytest.mark.asyncio
    async def test_send_broadcasts_signed_tx(self, state, mock_broadcaster, destination):
        sender = InscriptionSender(mock_broadcaster)

        txid = await sender.send_inscription(state, state.inscriptions["targeti0"], destination)

        mock_broadcaster.broadcast_transaction.assert_awaited_once()
        tx_hex = mock_broadcaster.broadcast_transaction.await_args.args[0]
        expected = prepare_inscription_transfer(
            state, state.inscriptions["targeti0"], destination, TransferConfig()
        )
        # RFC 6979 signatures are deterministic
        assert tx_hex == expected.to_hex()
        assert txid == expected.txid

    @pytest.mark.asyncio
    async def test_rejected_transfer_is_not_broadcast(
        self, state, inscribed_utxo, mock_broadcaster, destination
    ):
        state.inscriptions["siblingi0"] = _inscription("siblingi0", inscribed_utxo.outpoint)

        with pytest.raises(MultiInscriptionOutputError):
            await InscriptionSender(mock_broadcaster).send_inscription(
                state, state.inscriptions["targeti0"], destination
            )

        mock_broadcaster.broadcast_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_broadcast_error_propagates(self, state, mock_broadcaster, destination):
        mock_broadcaster.broadcast_transaction.side_effect = BroadcastError(
            "bad-txns-inputs-spent", status_code=400
        )

        with pytest.raises(BroadcastError, match="inputs-spent"):
            await InscriptionSender(mock_broadcaster).send_inscription(
                state, state.inscriptions["targeti0"], destination
            )
