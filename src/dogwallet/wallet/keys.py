"""
Key handling for the single-address Dogecoin wallet.

Credentials come from a BIP39 mnemonic (derived at m/44'/3'/0'/0/0) or from
a WIF private key. The wallet address is the compressed-key P2PKH address.
"""

from __future__ import annotations

import hashlib
import hmac

import base58
from coincurve import PrivateKey, PublicKey
from mnemonic import Mnemonic

from dogwallet.constants import DERIVATION, P2PKH_VERSION, P2SH_VERSION, WIF_VERSION
from dogwallet.errors import CredentialsError
from dogwallet.models import Credentials

# secp256k1 curve order
SECP256K1_N = int("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16)

_MNEMONIC = Mnemonic("english")


class HDKey:
    """
    Hierarchical Deterministic Key.
    Implements BIP32 private derivation.
    """

    def __init__(self, private_key: PrivateKey, chain_code: bytes, depth: int = 0):
        self._private_key = private_key
        self._public_key = private_key.public_key
        self.chain_code = chain_code
        self.depth = depth

    @property
    def private_key(self) -> PrivateKey:
        return self._private_key

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    @classmethod
    def from_seed(cls, seed: bytes) -> HDKey:
        """Create master HD key from seed"""
        hmac_result = hmac.new(b"Bitcoin seed", seed, hashlib.sha512).digest()
        return cls(PrivateKey(hmac_result[:32]), hmac_result[32:], depth=0)

    def derive(self, path: str) -> HDKey:
        """
        Derive child key from path notation (e.g., "m/44'/3'/0'/0/0")
        ' indicates hardened derivation
        """
        if not path.startswith("m"):
            raise ValueError("Path must start with 'm'")

        key = self
        for part in path.split("/")[1:]:
            if not part:
                continue

            hardened = part.endswith("'") or part.endswith("h")
            index = int(part.rstrip("'h"))
            if hardened:
                index += 0x80000000

            key = key._derive_child(index)

        return key

    def _derive_child(self, index: int) -> HDKey:
        if index >= 0x80000000:
            data = b"\x00" + self._private_key.secret + index.to_bytes(4, "big")
        else:
            data = self._public_key.format(compressed=True) + index.to_bytes(4, "big")

        hmac_result = hmac.new(self.chain_code, data, hashlib.sha512).digest()

        parent_key_int = int.from_bytes(self._private_key.secret, "big")
        offset_int = int.from_bytes(hmac_result[:32], "big")
        child_key_int = (parent_key_int + offset_int) % SECP256K1_N

        if child_key_int == 0:
            raise ValueError("Invalid child key")

        return HDKey(
            PrivateKey(child_key_int.to_bytes(32, "big")), hmac_result[32:], depth=self.depth + 1
        )


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


def pubkey_to_address(pubkey_bytes: bytes) -> str:
    """P2PKH address for a serialized public key."""
    return base58.b58encode_check(bytes([P2PKH_VERSION]) + hash160(pubkey_bytes)).decode("ascii")


def private_key_to_address(private_key: PrivateKey) -> str:
    return pubkey_to_address(private_key.public_key.format(compressed=True))


def private_key_to_wif(private_key: PrivateKey, compressed: bool = True) -> str:
    payload = bytes([WIF_VERSION]) + private_key.secret
    if compressed:
        payload += b"\x01"
    return base58.b58encode_check(payload).decode("ascii")


def private_key_from_wif(wif: str) -> PrivateKey:
    try:
        payload = base58.b58decode_check(wif.strip())
    except ValueError as e:
        raise CredentialsError(f"Invalid WIF private key: {e}") from e

    if not payload or payload[0] != WIF_VERSION:
        raise CredentialsError("Unexpected WIF version byte")

    secret = payload[1:]
    if len(secret) == 33 and secret[-1] == 0x01:
        secret = secret[:-1]
    if len(secret) != 32:
        raise CredentialsError(f"Invalid WIF payload length: {len(secret)}")

    return PrivateKey(secret)


def validate_mnemonic(text: str) -> bool:
    return _MNEMONIC.check(" ".join(text.split()))


def credentials_from_mnemonic(text: str, passphrase: str = "") -> Credentials:
    """Derive the wallet key from a BIP39 mnemonic."""
    words = " ".join(text.split())
    if not _MNEMONIC.check(words):
        raise CredentialsError("Invalid mnemonic")

    seed = Mnemonic.to_seed(words, passphrase)
    key = HDKey.from_seed(seed).derive(DERIVATION)
    return Credentials(private_key=key.private_key, mnemonic=words, derivation=DERIVATION)


def credentials_from_wif(wif: str) -> Credentials:
    return Credentials(private_key=private_key_from_wif(wif), mnemonic=None, derivation=None)


def generate_credentials(strength: int = 128) -> Credentials:
    """Fresh credentials from a new mnemonic (128 bits = 12 words)."""
    return credentials_from_mnemonic(_MNEMONIC.generate(strength=strength))


def address_to_script(address: str) -> bytes:
    """
    Convert a Dogecoin address to its scriptPubKey.

    Supports P2PKH (D...) and P2SH (9... / A...) mainnet addresses.
    """
    try:
        decoded = base58.b58decode_check(address.strip())
    except ValueError as e:
        raise CredentialsError(f"Invalid address {address!r}: {e}") from e

    if len(decoded) != 21:
        raise CredentialsError(f"Invalid address length: {address!r}")

    version, payload = decoded[0], decoded[1:]

    if version == P2PKH_VERSION:
        # OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG
        return bytes([0x76, 0xA9, 0x14]) + payload + bytes([0x88, 0xAC])

    if version == P2SH_VERSION:
        # OP_HASH160 <20-byte-scripthash> OP_EQUAL
        return bytes([0xA9, 0x14]) + payload + bytes([0x87])

    raise CredentialsError(f"Unknown address version: {version:#x}")


def is_valid_address(address: str) -> bool:
    try:
        address_to_script(address)
    except CredentialsError:
        return False
    return True
