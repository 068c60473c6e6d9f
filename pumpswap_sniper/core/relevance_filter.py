"""
Transaction Relevance Filter

Pure predicate deciding whether a detected transaction should trigger a
trade. Works on the jsonParsed transaction payload attached to the record.
"""
from __future__ import annotations

from typing import Any, Iterable

from pumpswap_sniper.core.models import ActivityRecord


class TransactionRelevanceFilter:
    """
    Checks, in order:
    - the transaction has a detail payload and did not fail
    - one of ``required_programs`` is involved (account keys or logs)
    - the estimated price impact lies inside [min_price_impact, max_price_impact]

    The price impact band is disabled when ``max_price_impact`` is 0.
    """

    def __init__(
        self,
        token_mint: str,
        min_price_impact: float = 0.0,
        max_price_impact: float = 0.0,
        required_programs: Iterable[str] = (),
    ) -> None:
        self.token_mint = token_mint
        self.min_price_impact = min_price_impact
        self.max_price_impact = max_price_impact
        self.required_programs = frozenset(required_programs)

    @classmethod
    def from_config(cls, config) -> "TransactionRelevanceFilter":
        return cls(
            token_mint=config.token_mint,
            min_price_impact=config.min_price_impact,
            max_price_impact=config.max_price_impact,
            required_programs=config.required_programs,
        )

    def is_relevant(self, record: ActivityRecord) -> bool:
        tx = record.detail
        if not tx or record.failed:
            return False

        meta = tx.get("meta") or {}
        if meta.get("err") is not None:
            return False

        if self.required_programs and not self._involves_required_program(tx):
            return False

        if self.max_price_impact > 0:
            impact = self.estimate_price_impact(tx)
            if impact is None:
                return False
            if not self.min_price_impact <= impact <= self.max_price_impact:
                return False

        return True

    def _involves_required_program(self, tx: dict[str, Any]) -> bool:
        if self.required_programs & set(_account_keys(tx)):
            return True
        logs = " ".join((tx.get("meta") or {}).get("logMessages") or [])
        return any(program in logs for program in self.required_programs)

    def estimate_price_impact(self, tx: dict[str, Any]) -> float | None:
        """
        Relative change (%) of the pool vault's balance of the tracked mint.

        The vault is taken to be the largest pre-transaction holder of the
        mint. Returns None when balances are missing.
        """
        meta = tx.get("meta") or {}
        pre = _mint_balances(meta.get("preTokenBalances"), self.token_mint)
        post = _mint_balances(meta.get("postTokenBalances"), self.token_mint)
        if not pre:
            return None

        vault_index, pre_amount = max(pre.items(), key=lambda item: item[1])
        if pre_amount <= 0:
            return None
        post_amount = post.get(vault_index, 0)
        return abs(post_amount - pre_amount) * 100 / pre_amount


def _account_keys(tx: dict[str, Any]) -> list[str]:
    message = (tx.get("transaction") or {}).get("message") or {}
    keys = []
    for key in message.get("accountKeys") or []:
        # jsonParsed gives dicts, json encoding gives plain strings
        keys.append(key.get("pubkey", "") if isinstance(key, dict) else str(key))
    for ix in message.get("instructions") or []:
        if isinstance(ix, dict) and ix.get("programId"):
            keys.append(ix["programId"])
    loaded = (tx.get("meta") or {}).get("loadedAddresses") or {}
    keys.extend(loaded.get("writable") or [])
    keys.extend(loaded.get("readonly") or [])
    return keys


def _mint_balances(balances: list[dict[str, Any]] | None, mint: str) -> dict[int, int]:
    out: dict[int, int] = {}
    for entry in balances or []:
        if entry.get("mint") != mint:
            continue
        try:
            out[int(entry["accountIndex"])] = int(entry["uiTokenAmount"]["amount"])
        except (KeyError, TypeError, ValueError):
            continue
    return out
