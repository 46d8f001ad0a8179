"""
Dogecoin and doginals wallet constants.

Amounts are in koinu (1 DOGE = 100,000,000 koinu).
"""

from __future__ import annotations

KOINU_PER_DOGE = 100_000_000

# Value carried by the output that receives a transferred inscription.
# Also the smallest change output we are willing to create.
DUST_AMOUNT = 1_000_000  # 0.01 DOGE

# Relay fee charged per started kilobyte of transaction size
DEFAULT_FEE_PER_KB = 1_000_000  # 0.01 DOGE

# BIP44 path for the single-key wallet (coin type 3 = Dogecoin)
DERIVATION = "m/44'/3'/0'/0/0"

# Attempts per unspent-output page before giving up
NUM_RETRIES = 3

# Outputs with more confirmations than this have a settled inscription index
SETTLED_CONFIRMATIONS = 10

# Base58 version bytes (mainnet)
P2PKH_VERSION = 0x1E
P2SH_VERSION = 0x16
WIF_VERSION = 0x9E

# Estimated sizes for legacy P2PKH transactions (bytes)
TX_OVERHEAD_SIZE = 10
P2PKH_INPUT_SIZE = 148
P2PKH_OUTPUT_SIZE = 34

# Storage keys
PRIVKEY_KEY = "privkey"
MNEMONIC_KEY = "mnemonic"
DERIVATION_KEY = "derivation"
ACCEPTED_TERMS_KEY = "accepted_terms"
UTXOS_KEY = "utxos"


def inscriptions_at_key(outpoint: str) -> str:
    """Storage key for the inscription ids found at an outpoint."""
    return f"inscriptions_at_{outpoint}"


def inscription_key(inscription_id: str) -> str:
    """Storage key for a cached inscription record."""
    return f"inscription_{inscription_id}"
