"""Trade SDKs - execute buys and percentage sells for the sniper.

JupiterTradeSDK builds, signs and submits real swaps:
- Jupiter quote and swap transaction building
- Signing with the wallet keypair (solders)
- Submission through the RPC sendTransaction endpoint

PaperTradeSDK simulates fills against the price oracle for dry runs.
"""
from __future__ import annotations

import base64
import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from solders.transaction import VersionedTransaction

from pumpswap_sniper.constants import FULL_EXIT_PCT, JUPITER_QUOTE_API, LAMPORTS_PER_SOL, SOL_MINT
from pumpswap_sniper.exceptions import SwapException, WalletException

if TYPE_CHECKING:
    from pumpswap_sniper.core.interfaces import PriceOracle
    from pumpswap_sniper.core.wallet import KeypairWallet


@dataclass
class TradeFill:
    mint: str
    side: str
    size_sol: float
    price: float
    signature: str
    token_amount: float = 0.0
    ts: float = field(default_factory=time.time)


class JupiterTradeSDK:
    """Executes real swaps on Solana using the Jupiter swap API."""

    def __init__(
        self,
        rpc_url: str,
        wallet: "KeypairWallet",
        slippage_bps: int = 500,
        quote_api_base: str = JUPITER_QUOTE_API,
        api_key: str = "",
        priority_fee_sol: float = 0.0001,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.wallet = wallet
        self.slippage_bps = slippage_bps
        self.quote_api_base = quote_api_base.rstrip("/")
        self.api_key = api_key
        self.priority_fee_sol = priority_fee_sol
        self.logger = logging.getLogger("pumpswap_sniper.trade_sdk")
        self._client = client

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            headers = {}
            if self.api_key:
                headers["x-api-key"] = self.api_key
            self._client = httpx.AsyncClient(headers=headers, timeout=30.0)
        return self._client

    def _check_wallet(self, wallet: str) -> None:
        if wallet != self.wallet.public_key:
            raise WalletException("Trade requested for a wallet this SDK cannot sign for", wallet=wallet)

    async def buy(self, token_mint: str, wallet: str, amount_sol: float) -> str:
        """Swap ``amount_sol`` SOL into ``token_mint``."""
        self._check_wallet(wallet)
        amount_lamports = int(amount_sol * LAMPORTS_PER_SOL)
        if amount_lamports <= 0:
            raise SwapException("Buy amount too small", mint=token_mint, amount_sol=amount_sol)

        self.logger.info(
            "LIVE BUY: %s | Size: %.4f SOL | Slippage: %d bps", token_mint[:12], amount_sol, self.slippage_bps
        )
        signature = await self._swap(SOL_MINT, token_mint, amount_lamports)
        self.logger.info("LIVE BUY submitted: %s | TX: %s...", token_mint[:12], signature[:16])
        return signature

    async def sell_percentage(self, token_mint: str, wallet: str, pct: float) -> str:
        """
        Swap ``pct`` percent of the held ``token_mint`` balance back into SOL.

        A 0% sell sends nothing and returns an empty signature.
        """
        self._check_wallet(wallet)
        if not 0 <= pct <= 100:
            raise SwapException("Sell percentage out of range", mint=token_mint, pct=pct)
        if pct == 0:
            self.logger.info("LIVE SELL skipped: %s | 0%% requested", token_mint[:12])
            return ""

        balance = await self.get_token_balance(token_mint)
        amount_raw = balance if pct >= FULL_EXIT_PCT else int(balance * pct / 100)
        if amount_raw <= 0:
            raise SwapException("No balance to sell", mint=token_mint, balance=balance, pct=pct)

        self.logger.info("LIVE SELL: %s | %.1f%% | AmountRaw: %d", token_mint[:12], pct, amount_raw)
        signature = await self._swap(token_mint, SOL_MINT, amount_raw)
        self.logger.info("LIVE SELL submitted: %s | TX: %s...", token_mint[:12], signature[:16])
        return signature

    async def _swap(self, input_mint: str, output_mint: str, amount: int) -> str:
        quote = await self._get_jupiter_quote(input_mint, output_mint, amount)
        swap_tx = await self._build_swap_transaction(quote)
        signed_tx = self._sign_transaction(swap_tx)
        return await self._submit_via_rpc(signed_tx)

    async def _get_jupiter_quote(self, input_mint: str, output_mint: str, amount: int) -> dict:
        """Get swap quote from Jupiter."""
        client = await self._ensure_client()
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": self.slippage_bps,
            "onlyDirectRoutes": "false",
            "asLegacyTransaction": "false",
        }
        try:
            response = await client.get(f"{self.quote_api_base}/quote", params=params)
            response.raise_for_status()
            quote = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SwapException("Jupiter quote failed", input=input_mint, output=output_mint, error=str(e)) from e

        self.logger.debug(
            "Jupiter quote: in=%s out=%s route=%s",
            quote.get("inAmount"), quote.get("outAmount"), len(quote.get("routePlan", [])),
        )
        return quote

    async def _build_swap_transaction(self, quote: dict) -> bytes:
        """Build swap transaction from Jupiter quote."""
        client = await self._ensure_client()
        priority_fee_lamports = int(self.priority_fee_sol * LAMPORTS_PER_SOL)
        payload = {
            "quoteResponse": quote,
            "userPublicKey": self.wallet.public_key,
            "wrapAndUnwrapSol": True,
            "computeUnitPriceMicroLamports": priority_fee_lamports * 1000,
            "dynamicComputeUnitLimit": True,
        }
        try:
            response = await client.post(f"{self.quote_api_base}/swap", json=payload)
            response.raise_for_status()
            swap_tx_b64 = response.json().get("swapTransaction")
        except (httpx.HTTPError, ValueError) as e:
            raise SwapException("Jupiter swap build failed", error=str(e)) from e

        if not swap_tx_b64:
            raise SwapException("Jupiter returned no swap transaction")
        return base64.b64decode(swap_tx_b64)

    def _sign_transaction(self, tx_bytes: bytes) -> bytes:
        """Sign a transaction with wallet keypair."""
        try:
            tx = VersionedTransaction.from_bytes(tx_bytes)
            signed_tx = VersionedTransaction(tx.message, [self.wallet.keypair])
            return bytes(signed_tx)
        except Exception as e:
            raise SwapException("Transaction signing failed", error=str(e)) from e

    async def _submit_via_rpc(self, signed_tx: bytes) -> str:
        """Submit transaction directly to RPC."""
        client = await self._ensure_client()
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "sendTransaction",
            "params": [
                base64.b64encode(signed_tx).decode(),
                {"encoding": "base64", "skipPreflight": True, "maxRetries": 3},
            ],
        }
        try:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SwapException("RPC submission failed", error=str(e)) from e

        if "error" in result:
            raise SwapException("RPC rejected transaction", error=str(result["error"]))
        tx_sig = result.get("result")
        if not tx_sig:
            raise SwapException("RPC returned no signature")
        return tx_sig

    async def get_token_balance(self, token_mint: str) -> int:
        """Raw token balance across all of the wallet's token accounts for the mint."""
        client = await self._ensure_client()
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getTokenAccountsByOwner",
            "params": [self.wallet.public_key, {"mint": token_mint}, {"encoding": "jsonParsed"}],
        }
        try:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            accounts = ((response.json().get("result") or {}).get("value")) or []
        except (httpx.HTTPError, ValueError) as e:
            raise SwapException("Token balance lookup failed", mint=token_mint, error=str(e)) from e

        total = 0
        for acc in accounts:
            try:
                total += int(acc["account"]["data"]["parsed"]["info"]["tokenAmount"]["amount"])
            except (KeyError, TypeError, ValueError):
                continue
        return total

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


class PaperTradeSDK:
    """Simulated fills at the oracle price with random slippage inside the configured band.

    Token quantities are in oracle units (SOL / USD price); only the ratio
    between buy and sell fills matters for simulated PnL.
    """

    def __init__(
        self,
        price_oracle: "PriceOracle",
        starting_balance_sol: float = 10.0,
        slippage_pct: float = 1.0,
        seed: int | None = None,
    ) -> None:
        self.price_oracle = price_oracle
        self.balance_sol = starting_balance_sol
        self.slippage_pct = slippage_pct
        self.rng = random.Random(seed)
        self.holdings: dict[str, float] = {}
        self.fills: list[TradeFill] = []
        self.logger = logging.getLogger("pumpswap_sniper.paper")

    def _fill_price(self, price: float, side: str) -> float:
        slip = self.rng.uniform(0, self.slippage_pct) / 100
        return price * (1 + slip) if side == "BUY" else price * (1 - slip)

    async def buy(self, token_mint: str, wallet: str, amount_sol: float) -> str:
        if amount_sol > self.balance_sol:
            raise SwapException("Insufficient paper balance", balance=self.balance_sol, amount_sol=amount_sol)
        price = self._fill_price(await self.price_oracle.get_price(token_mint), "BUY")
        tokens = amount_sol / price
        self.balance_sol -= amount_sol
        self.holdings[token_mint] = self.holdings.get(token_mint, 0.0) + tokens
        return self._record(token_mint, "BUY", amount_sol, price, tokens)

    async def sell_percentage(self, token_mint: str, wallet: str, pct: float) -> str:
        held = self.holdings.get(token_mint, 0.0)
        if held <= 0:
            raise SwapException("No paper balance to sell", mint=token_mint)
        tokens = held * min(pct, FULL_EXIT_PCT) / 100
        price = self._fill_price(await self.price_oracle.get_price(token_mint), "SELL")
        proceeds = tokens * price
        self.holdings[token_mint] = held - tokens
        self.balance_sol += proceeds
        return self._record(token_mint, "SELL", proceeds, price, tokens)

    def _record(self, mint: str, side: str, size_sol: float, price: float, tokens: float) -> str:
        signature = f"paper-{uuid.uuid4().hex}"
        self.fills.append(TradeFill(mint, side, size_sol, price, signature, tokens))
        self.logger.info(
            "PAPER %s: %s | %.4f SOL | %.6f tokens @ %.10f | balance %.4f SOL",
            side, mint[:12], size_sol, tokens, price, self.balance_sol,
        )
        return signature
