"""Plain Solana JSON-RPC client for the calls the report pipeline needs."""

import asyncio
from typing import Any

import httpx
from loguru import logger

from launch_radar.parsers.exceptions import DataUnavailable
from launch_radar.parsers.rate_limiter import RateLimiter
from launch_radar.parsers.solana_rpc.models import (
    MintSupply,
    ParsedTransaction,
    SignatureInfo,
    TokenAccount,
    TokenBalance,
)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_ACCOUNT_SIZE = 165  # SPL token account layout, mint at offset 0

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]

# Node-side transient errors worth retrying (slot skipped, node behind)
RETRYABLE_RPC_CODES = {-32004, -32005, -32007, -32009, -32014}


class SolanaRpcClient:
    """Async JSON-RPC client over httpx.

    Every method raises DataUnavailable when the node cannot answer after
    retries, so callers can tell "nothing there" from "could not look".
    """

    def __init__(
        self, rpc_url: str, max_rps: float = 10.0, timeout: float = 20.0
    ) -> None:
        self._rpc_url = rpc_url
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        """POST one JSON-RPC request and return its "result" member."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        last_error = "no attempt made"

        for attempt in range(MAX_RETRIES + 1):
            delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.post(self._rpc_url, json=payload)
            except httpx.TransportError as e:
                # timeouts, refused connections and resets mid-response alike
                last_error = f"{type(e).__name__}: {e}"
                if attempt < MAX_RETRIES:
                    logger.debug(f"[RPC] {method} {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                continue

            if resp.status_code == 429:
                last_error = "rate limited"
                if attempt < MAX_RETRIES:
                    logger.debug(f"[RPC] {method} rate limited, waiting {delay}s")
                    await asyncio.sleep(delay)
                continue
            if resp.status_code != 200:
                raise DataUnavailable(f"{method}: HTTP {resp.status_code}")

            try:
                data = resp.json()
            except ValueError as e:
                raise DataUnavailable(f"{method}: non-JSON response body") from e
            if not isinstance(data, dict):
                raise DataUnavailable(f"{method}: unexpected response {type(data).__name__}")
            error = data.get("error")
            if error:
                code = error.get("code") if isinstance(error, dict) else None
                last_error = f"RPC error {error}"
                if code in RETRYABLE_RPC_CODES and attempt < MAX_RETRIES:
                    await asyncio.sleep(delay)
                    continue
                raise DataUnavailable(f"{method}: {last_error}")

            return data.get("result")

        logger.warning(f"[RPC] {method} failed after {MAX_RETRIES + 1} attempts: {last_error}")
        raise DataUnavailable(f"{method}: {last_error}")

    async def get_transaction(self, signature: str) -> ParsedTransaction | None:
        """Resolve a signature into a parsed transaction.

        Returns None when the node does not (yet) know the transaction.
        """
        result = await self._call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "commitment": "confirmed",
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
        if not result:
            return None
        return _parse_transaction(signature, result)

    async def get_token_accounts_for_mint(self, mint: str) -> list[TokenAccount]:
        """Scan every SPL token account of a mint (single getProgramAccounts call)."""
        result = await self._call(
            "getProgramAccounts",
            [
                TOKEN_PROGRAM_ID,
                {
                    "encoding": "jsonParsed",
                    "commitment": "confirmed",
                    "filters": [
                        {"dataSize": TOKEN_ACCOUNT_SIZE},
                        {"memcmp": {"offset": 0, "bytes": mint}},
                    ],
                },
            ],
        )
        if result is None:
            raise DataUnavailable(f"getProgramAccounts returned no result for {mint}")
        return [_parse_token_account(item) for item in result]

    async def get_owner_token_balance(self, owner: str, mint: str) -> int | None:
        """Raw balance of owner's token accounts for mint.

        Returns None when owner has no token account for the mint.
        """
        result = await self._call(
            "getTokenAccountsByOwner",
            [owner, {"mint": mint}, {"encoding": "jsonParsed", "commitment": "confirmed"}],
        )
        accounts = (result or {}).get("value", [])
        if not accounts:
            return None
        return sum(_parse_token_account(item).raw_amount for item in accounts)

    async def get_mint_supply(self, mint: str) -> MintSupply:
        """Total supply and decimals of a mint."""
        result = await self._call("getTokenSupply", [mint, {"commitment": "confirmed"}])
        value = (result or {}).get("value")
        if not value:
            raise DataUnavailable(f"getTokenSupply returned no value for {mint}")
        return MintSupply(
            raw_supply=int(value.get("amount", "0")),
            decimals=value.get("decimals", 0),
        )

    async def get_signatures_for_address(
        self, address: str, *, limit: int = 50, before: str = ""
    ) -> list[SignatureInfo]:
        """Most recent signatures involving address, newest first."""
        params: dict[str, Any] = {"limit": min(limit, 1000), "commitment": "confirmed"}
        if before:
            params["before"] = before

        result = await self._call("getSignaturesForAddress", [address, params])
        return [
            SignatureInfo(
                signature=sig.get("signature", ""),
                slot=sig.get("slot", 0),
                timestamp=sig.get("blockTime") or 0,
                err=sig.get("err"),
            )
            for sig in result or []
        ]


def _parse_token_amount(token_amount: dict) -> tuple[int, int]:
    return int(token_amount.get("amount", "0") or 0), token_amount.get("decimals", 0)


def _parse_token_account(item: dict) -> TokenAccount:
    """Parse a jsonParsed {pubkey, account} entry."""
    data = item.get("account", {}).get("data", {})
    info = data.get("parsed", {}).get("info", {}) if isinstance(data, dict) else {}
    raw_amount, decimals = _parse_token_amount(info.get("tokenAmount", {}))
    return TokenAccount(
        address=item.get("pubkey", ""),
        owner=info.get("owner", ""),
        mint=info.get("mint", ""),
        raw_amount=raw_amount,
        decimals=decimals,
    )


def _parse_token_balances(entries: list[dict] | None) -> list[TokenBalance]:
    balances = []
    for entry in entries or []:
        raw_amount, decimals = _parse_token_amount(entry.get("uiTokenAmount", {}))
        balances.append(TokenBalance(
            account_index=entry.get("accountIndex", 0),
            mint=entry.get("mint", ""),
            owner=entry.get("owner", ""),
            raw_amount=raw_amount,
            decimals=decimals,
        ))
    return balances


def _parse_transaction(signature: str, data: dict) -> ParsedTransaction:
    """Parse raw getTransaction result (jsonParsed or json encoding)."""
    meta = data.get("meta") or {}
    message = (data.get("transaction") or {}).get("message", {})

    # jsonParsed gives [{"pubkey": ..., "signer": ...}], plain json gives [str]
    account_keys = [
        key.get("pubkey", "") if isinstance(key, dict) else key
        for key in message.get("accountKeys", [])
    ]

    return ParsedTransaction(
        signature=signature,
        slot=data.get("slot", 0),
        block_time=data.get("blockTime") or 0,
        account_keys=account_keys,
        err=meta.get("err"),
        log_messages=meta.get("logMessages") or [],
        pre_token_balances=_parse_token_balances(meta.get("preTokenBalances")),
        post_token_balances=_parse_token_balances(meta.get("postTokenBalances")),
    )
