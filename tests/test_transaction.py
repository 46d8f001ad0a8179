"""
Tests for legacy transaction serialization and P2PKH signing.
"""

from __future__ import annotations

import pytest
from coincurve import PublicKey

from dogwallet.errors import TransactionSigningError
from dogwallet.wallet.keys import address_to_script
from dogwallet.wallet.transaction import (
    Transaction,
    TxInput,
    TxOutput,
    compute_sighash_legacy,
    hash256,
    push_data,
    serialize_outpoint,
    sign_transaction,
    varint,
)
from dogwallet.wallet.transfer import estimate_tx_size


def _tx(wallet_script: str, destination: str, num_inputs: int = 1) -> Transaction:
    inputs = [
        TxInput(txid=f"{i + 1:02x}" * 32, vout=i, value=2_000_000, scriptpubkey=wallet_script)
        for i in range(num_inputs)
    ]
    outputs = [
        TxOutput(value=1_000_000, script=address_to_script(destination), address=destination)
    ]
    return Transaction(inputs=inputs, outputs=outputs)


def _parse_script_sig(script_sig: bytes) -> tuple[bytes, bytes]:
    sig_len = script_sig[0]
    signature = script_sig[1 : 1 + sig_len]
    pub_len = script_sig[1 + sig_len]
    pubkey = script_sig[2 + sig_len : 2 + sig_len + pub_len]
    assert len(script_sig) == 2 + sig_len + pub_len
    return signature, pubkey


class TestEncoding:
    def test_varint(self):
        assert varint(0) == b"\x00"
        assert varint(0xFC) == b"\xfc"
        assert varint(0xFD) == b"\xfd\xfd\x00"
        assert varint(0xFFFF) == b"\xfd\xff\xff"
        assert varint(0x10000) == b"\xfe\x00\x00\x01\x00"
        assert varint(0x100000000) == b"\xff\x00\x00\x00\x00\x01\x00\x00\x00"

    def test_push_data(self):
        assert push_data(b"\xab" * 33) == b"\x21" + b"\xab" * 33

    def test_push_data_too_long(self):
        with pytest.raises(TransactionSigningError):
            push_data(b"\x00" * 76)

    def test_outpoint_is_little_endian(self):
        txid = "00" * 31 + "ff"
        assert serialize_outpoint(txid, 1) == b"\xff" + b"\x00" * 31 + b"\x01\x00\x00\x00"


class TestTransaction:
    def test_unsigned_layout(self, wallet_script, destination):
        tx = _tx(wallet_script, destination)
        raw = tx.serialize()

        assert raw[:4] == b"\x01\x00\x00\x00"  # version 1
        assert raw[4] == 1  # input count
        assert raw[-4:] == b"\x00\x00\x00\x00"  # locktime
        assert tx.to_hex() == raw.hex()

    def test_txid(self, wallet_script, destination):
        tx = _tx(wallet_script, destination)
        assert tx.txid == hash256(tx.serialize())[::-1].hex()

    def test_amounts(self, wallet_script, destination):
        tx = _tx(wallet_script, destination, num_inputs=2)

        assert tx.input_amount == 4_000_000
        assert tx.output_amount == 1_000_000
        assert tx.fee == 3_000_000


class TestSigning:
    def test_sign_all_inputs(self, credentials, wallet_script, destination):
        """Every input gets <sig+SIGHASH_ALL> <compressed pubkey> and verifies."""
        tx = _tx(wallet_script, destination, num_inputs=3)
        sighashes = [compute_sighash_legacy(tx, i) for i in range(3)]

        sign_transaction(tx, credentials.private_key)

        assert tx.is_fully_signed()
        pubkey_bytes = credentials.private_key.public_key.format(compressed=True)
        for inp, sighash in zip(tx.inputs, sighashes, strict=True):
            signature, pubkey = _parse_script_sig(inp.script_sig)
            assert signature[-1] == 0x01
            assert pubkey == pubkey_bytes
            assert PublicKey(pubkey).verify(signature[:-1], sighash, hasher=None)

    def test_sighash_differs_per_input(self, wallet_script, destination):
        tx = _tx(wallet_script, destination, num_inputs=2)
        assert compute_sighash_legacy(tx, 0) != compute_sighash_legacy(tx, 1)

    def test_sighash_ignores_existing_script_sigs(self, credentials, wallet_script, destination):
        tx = _tx(wallet_script, destination, num_inputs=2)
        before = compute_sighash_legacy(tx, 1)

        sign_transaction(tx, credentials.private_key)

        assert compute_sighash_legacy(tx, 1) == before

    def test_signed_size_within_estimate(self, credentials, wallet_script, destination):
        tx = _tx(wallet_script, destination, num_inputs=2)
        sign_transaction(tx, credentials.private_key)
        assert len(tx.serialize()) <= estimate_tx_size(2, 1)

    def test_input_index_out_of_range(self, wallet_script, destination):
        tx = _tx(wallet_script, destination)
        with pytest.raises(TransactionSigningError, match="out of range"):
            compute_sighash_legacy(tx, 1)

    def test_invalid_scriptpubkey(self, credentials, destination):
        tx = _tx("zz", destination)
        with pytest.raises(TransactionSigningError, match="Invalid scriptPubKey"):
            sign_transaction(tx, credentials.private_key)
