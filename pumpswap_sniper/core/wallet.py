"""Wallet provider - loads the trading keypair from a secret string."""
from __future__ import annotations

import json
import logging

import base58
from solders.keypair import Keypair  # type: ignore
from solders.pubkey import Pubkey  # type: ignore

from pumpswap_sniper.exceptions import WalletException


def keypair_from_secret(private_key: str) -> Keypair:
    """Accepts a base58 string or a JSON byte array (solana-keygen format)."""
    private_key = (private_key or "").strip()
    if not private_key:
        raise WalletException("SOLANA_PRIVATE_KEY not found in environment")
    try:
        if private_key.startswith("["):
            key_bytes = bytes(json.loads(private_key))
        else:
            key_bytes = base58.b58decode(private_key)
        return Keypair.from_bytes(key_bytes)
    except Exception as e:
        raise WalletException("Invalid private key", error=str(e)) from e


class KeypairWallet:
    """Signing wallet used as the trading account."""

    def __init__(self, keypair: Keypair) -> None:
        self.keypair = keypair
        self.pubkey: Pubkey = keypair.pubkey()
        logging.getLogger("pumpswap_sniper.wallet").info(
            "Wallet initialized: %s...", str(self.pubkey)[:12]
        )

    @classmethod
    def from_secret(cls, private_key: str) -> "KeypairWallet":
        return cls(keypair_from_secret(private_key))

    @property
    def public_key(self) -> str:
        return str(self.pubkey)


class WatchOnlyWallet:
    """Public identity without signing ability, used for paper trading."""

    def __init__(self, public_key: str) -> None:
        self._public_key = str(Pubkey.from_string(public_key))

    @property
    def public_key(self) -> str:
        return self._public_key
