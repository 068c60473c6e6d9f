"""
Solana ledger adapter.

Wraps the solana-py AsyncClient for the two queries the detector needs:
recent signatures for an address and the parsed transaction behind one.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..exceptions import NetworkException
from ..utils.circuit_breaker import CircuitBreaker
from .models import ActivityRecord

logger = logging.getLogger(__name__)


class SolanaLedgerClient:
    """
    Ledger client backed by a single RPC endpoint.

    Every call is bounded by ``timeout`` and guarded by a circuit breaker.
    Failures surface as NetworkException; there is no per-call retry, the
    controller backs off at loop level instead.

    Usage:
        ledger = SolanaLedgerClient("https://api.mainnet-beta.solana.com")
        records = await ledger.get_recent_activity(mint, limit=1)
        detail = await ledger.get_activity_detail(records[0].signature)
        await ledger.close()
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        client: Optional[AsyncClient] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.client = client or AsyncClient(rpc_url, commitment=Confirmed)
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=30.0,
            name="RPC"
        )

    async def _call(self, method: str, *args, **kwargs) -> Any:
        """Execute an RPC method with timeout and circuit breaker."""
        if not self.circuit_breaker.can_execute():
            raise NetworkException("RPC circuit breaker open", method=method)

        try:
            rpc_method = getattr(self.client, method)
            result = await asyncio.wait_for(rpc_method(*args, **kwargs), timeout=self.timeout)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.warning(f"RPC {method} failed: {e}")
            raise NetworkException(f"RPC {method} failed", error=str(e)) from e

        self.circuit_breaker.record_success()
        return result

    async def get_recent_activity(
        self,
        address: str,
        limit: Optional[int] = None,
        until: Optional[str] = None,
        before: Optional[str] = None,
    ) -> List[ActivityRecord]:
        """Signatures touching ``address``, newest-first."""
        resp = await self._call(
            "get_signatures_for_address",
            Pubkey.from_string(address),
            before=Signature.from_string(before) if before else None,
            until=Signature.from_string(until) if until else None,
            limit=limit,
        )
        return [ActivityRecord.from_rpc(entry) for entry in (resp.value or [])]

    async def get_activity_detail(self, signature: str) -> Optional[Dict[str, Any]]:
        """Parsed transaction for ``signature``, or None if the node has not indexed it."""
        resp = await self._call(
            "get_transaction",
            Signature.from_string(signature),
            encoding="jsonParsed",
            max_supported_transaction_version=0,
        )
        if resp.value is None:
            return None
        return normalize_transaction(json.loads(resp.to_json()).get("result"))

    async def close(self):
        """Close the underlying client"""
        await self.client.close()


def normalize_transaction(result: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Flatten a getTransaction result to the RPC shape
    ``{"slot", "blockTime", "meta", "transaction": {"message": ...}}``.
    """
    if not result:
        return None
    tx = result.get("transaction") or {}
    if "meta" not in result and isinstance(tx, dict) and "meta" in tx:
        flat = dict(result)
        flat["meta"] = tx.get("meta")
        flat["transaction"] = tx.get("transaction") or {}
        if "version" in tx:
            flat["version"] = tx["version"]
        return flat
    return result
