"""
Wallet data models.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

from coincurve import PrivateKey
from pydantic import BaseModel, Field


def make_outpoint(txid: str, vout: int) -> str:
    return f"{txid}:{vout}"


def to_data_uri(content: bytes, content_type: str | None) -> str:
    """Encode raw content as a base64 data URI, keeping any mime parameters."""
    mime = (content_type or "").strip() or "application/octet-stream"
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"


class Utxo(BaseModel):
    """Unspent output as reported by the UTXO indexer."""

    txid: str
    vout: int = Field(ge=0)
    script: str
    satoshis: int = Field(ge=0)
    confirmations: int | None = Field(default=None, ge=0)  # None means unconfirmed

    model_config = {"frozen": True}

    @property
    def outpoint(self) -> str:
        return make_outpoint(self.txid, self.vout)

    @property
    def is_confirmed(self) -> bool:
        return bool(self.confirmations)


class Inscription(BaseModel):
    """Inscription content and metadata, immutable once discovered."""

    id: str
    data: str  # data URI
    outpoint: str
    number: str

    model_config = {"frozen": True}

    @property
    def content_type(self) -> str:
        """Mime type of the content, without parameters."""
        if not self.data.lower().startswith("data:"):
            return ""
        return self.data[5:].split(";")[0].split(",")[0]

    @property
    def is_image(self) -> bool:
        return self.data.lower().startswith("data:image/")

    @property
    def is_text(self) -> bool:
        return self.data.lower().startswith("data:text")

    def text(self) -> str | None:
        """Decoded UTF-8 content for text inscriptions, None otherwise."""
        if not self.is_text:
            return None
        payload = self.data[5:].split(";")[-1]
        if payload.startswith("base64,"):
            payload = payload[len("base64,") :]
        try:
            return base64.b64decode(payload).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            return None


def describe_inscription(inscription: Inscription) -> dict[str, Any]:
    """Display summary of an inscription: mime type and, for text, the decoded content."""
    return {
        "id": inscription.id,
        "number": inscription.number,
        "outpoint": inscription.outpoint,
        "content_type": inscription.content_type,
        "text": inscription.text(),
    }


@dataclass
class Credentials:
    """Private key with the mnemonic and path it came from, if any."""

    private_key: PrivateKey
    mnemonic: str | None = None
    derivation: str | None = None

    @property
    def address(self) -> str:
        from dogwallet.wallet.keys import private_key_to_address

        return private_key_to_address(self.private_key)


@dataclass
class WalletState:
    """
    Caller-owned view of the wallet.

    utxos holds confirmed outputs only, newest first.
    """

    credentials: Credentials | None = None
    accepted_terms: bool = False
    utxos: list[Utxo] | None = None
    num_unconfirmed: int = 0
    inscriptions: dict[str, Inscription] = field(default_factory=dict)

    @property
    def balance(self) -> int:
        return sum(utxo.satoshis for utxo in self.utxos or [])

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.credentials.address if self.credentials else None,
            "balance": self.balance,
            "num_unconfirmed": self.num_unconfirmed,
            "utxos": [u.model_dump() for u in self.utxos or []],
            "inscriptions": {k: v.model_dump() for k, v in self.inscriptions.items()},
        }
