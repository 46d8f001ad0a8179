"""
Legacy (non-segwit) transaction serialization and P2PKH signing.

Dogecoin has no segwit, so every input is signed with the legacy
SIGHASH_ALL algorithm: the spent scriptPubKey is placed in the signed
input's scriptSig, every other scriptSig is emptied, and the sighash type is
appended before double-SHA256.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field

from coincurve import PrivateKey

from dogwallet.errors import TransactionSigningError

SIGHASH_ALL = 1


@dataclass
class TxInput:
    """Transaction input."""

    txid: str
    vout: int
    value: int
    scriptpubkey: str  # hex of the output being spent
    script_sig: bytes = b""
    sequence: int = 0xFFFFFFFF


@dataclass
class TxOutput:
    """Transaction output."""

    value: int
    script: bytes
    address: str = ""


@dataclass
class Transaction:
    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    version: int = 1
    locktime: int = 0

    @property
    def input_amount(self) -> int:
        return sum(inp.value for inp in self.inputs)

    @property
    def output_amount(self) -> int:
        return sum(out.value for out in self.outputs)

    @property
    def fee(self) -> int:
        return self.input_amount - self.output_amount

    def serialize(self) -> bytes:
        return serialize_transaction(self)

    def to_hex(self) -> str:
        return self.serialize().hex()

    @property
    def txid(self) -> str:
        return hash256(self.serialize())[::-1].hex()

    def is_fully_signed(self) -> bool:
        return all(inp.script_sig for inp in self.inputs)


def hash256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def varint(n: int) -> bytes:
    """Encode integer as Bitcoin varint."""
    if n < 0xFD:
        return bytes([n])
    elif n <= 0xFFFF:
        return bytes([0xFD]) + struct.pack("<H", n)
    elif n <= 0xFFFFFFFF:
        return bytes([0xFE]) + struct.pack("<I", n)
    else:
        return bytes([0xFF]) + struct.pack("<Q", n)


def push_data(data: bytes) -> bytes:
    """Minimal script push for data up to 75 bytes."""
    if len(data) > 75:
        raise TransactionSigningError(f"Push of {len(data)} bytes not supported")
    return bytes([len(data)]) + data


def serialize_outpoint(txid: str, vout: int) -> bytes:
    """Serialize outpoint (txid:vout)."""
    # txid is in RPC format (big-endian), need to reverse for raw tx
    return bytes.fromhex(txid)[::-1] + struct.pack("<I", vout)


def _serialize(tx: Transaction, script_sigs: list[bytes]) -> bytes:
    result = struct.pack("<I", tx.version)

    result += varint(len(tx.inputs))
    for inp, script_sig in zip(tx.inputs, script_sigs, strict=True):
        result += serialize_outpoint(inp.txid, inp.vout)
        result += varint(len(script_sig))
        result += script_sig
        result += struct.pack("<I", inp.sequence)

    result += varint(len(tx.outputs))
    for out in tx.outputs:
        result += struct.pack("<Q", out.value)
        result += varint(len(out.script))
        result += out.script

    result += struct.pack("<I", tx.locktime)
    return result


def serialize_transaction(tx: Transaction) -> bytes:
    return _serialize(tx, [inp.script_sig for inp in tx.inputs])


def compute_sighash_legacy(
    tx: Transaction, input_index: int, sighash_type: int = SIGHASH_ALL
) -> bytes:
    if input_index >= len(tx.inputs):
        raise TransactionSigningError("Input index out of range")

    try:
        script_sigs = [b""] * len(tx.inputs)
        script_sigs[input_index] = bytes.fromhex(tx.inputs[input_index].scriptpubkey)
    except ValueError as e:
        raise TransactionSigningError(f"Invalid scriptPubKey for input {input_index}: {e}") from e

    preimage = _serialize(tx, script_sigs) + struct.pack("<I", sighash_type)
    return hash256(preimage)


def sign_p2pkh_input(
    tx: Transaction,
    input_index: int,
    private_key: PrivateKey,
    sighash_type: int = SIGHASH_ALL,
) -> bytes:
    """Sign a P2PKH input using coincurve.

    Returns:
        scriptSig: <DER signature + sighash byte> <compressed pubkey>
    """
    sighash = compute_sighash_legacy(tx, input_index, sighash_type)

    # The sighash is already SHA256d, so skip coincurve's hashing
    signature = private_key.sign(sighash, hasher=None) + bytes([sighash_type])
    pubkey = private_key.public_key.format(compressed=True)

    return push_data(signature) + push_data(pubkey)


def sign_transaction(tx: Transaction, private_key: PrivateKey) -> Transaction:
    """Sign every input with the same key, in place."""
    # Sighashes blank all scriptSigs, so signing order does not matter
    script_sigs = [sign_p2pkh_input(tx, i, private_key) for i in range(len(tx.inputs))]
    for inp, script_sig in zip(tx.inputs, script_sigs, strict=True):
        inp.script_sig = script_sig
    return tx
