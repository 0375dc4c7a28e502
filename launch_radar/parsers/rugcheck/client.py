"""Rugcheck.xyz client. Only the full token report endpoint is used."""

import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from launch_radar.parsers.rate_limiter import RateLimiter
from launch_radar.parsers.rugcheck.models import RugcheckReport, RugcheckRisk

DEFAULT_BASE_URL = "https://api.rugcheck.xyz/v1"
MAX_RETRIES = 2
RETRY_DELAYS = [2.0, 5.0]
# Rugcheck sits behind a CDN that sheds load with these
RETRYABLE_STATUS = {429, 502, 503, 504}


def _retry_delay(attempt: int) -> float:
    return RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]


class RugcheckClient:
    """Async HTTP client for Rugcheck.xyz (free, no API key)."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, max_rps: float = 2.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=15.0, headers={"Accept": "application/json"})

    async def close(self) -> None:
        await self._client.aclose()

    async def get_token_report(self, mint: str) -> RugcheckReport | None:
        """Full report for `mint`, or None when no score can be had.

        None covers unknown tokens, reports without a score and an API that
        keeps failing. Callers must read None as "unknown", never as "safe".
        """
        data = await self._get_json(f"{self._base_url}/tokens/{mint}/report", mint)
        if data is None:
            return None
        if not isinstance(data, dict) or data.get("score") is None:
            logger.debug(f"[RUGCHECK] Report for {mint[:12]} has no score")
            return None
        try:
            return _parse_report(data, mint)
        except ValidationError as e:
            logger.warning(f"[RUGCHECK] Unexpected report shape for {mint[:12]}: {e}")
            return None

    async def _get_json(self, url: str, mint: str) -> object | None:
        last_problem = ""
        for attempt in range(MAX_RETRIES + 1):
            if attempt:
                await asyncio.sleep(_retry_delay(attempt - 1))
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.get(url)
            except httpx.TransportError as e:
                last_problem = type(e).__name__
                logger.debug(f"[RUGCHECK] {last_problem} for {mint[:12]} (attempt {attempt + 1})")
                continue

            if resp.status_code == 200:
                try:
                    return resp.json()
                except ValueError:
                    logger.warning(f"[RUGCHECK] Non-JSON body for {mint[:12]}")
                    return None
            if resp.status_code == 404:
                return None
            if resp.status_code in RETRYABLE_STATUS:
                last_problem = f"HTTP {resp.status_code}"
                logger.debug(f"[RUGCHECK] {last_problem} for {mint[:12]}, backing off")
                continue
            logger.debug(f"[RUGCHECK] HTTP {resp.status_code} for {mint[:12]}")
            return None

        logger.warning(f"[RUGCHECK] Gave up on {mint[:12]} after {MAX_RETRIES + 1} attempts: {last_problem}")
        return None


def _parse_report(data: dict, mint: str) -> RugcheckReport:
    token_meta = data.get("tokenMeta") or {}
    return RugcheckReport(
        score=data["score"],
        score_normalised=data.get("score_normalised") or 0,
        risks=[RugcheckRisk.model_validate(r) for r in data.get("risks") or []],
        mint=data.get("mint") or mint,
        token_name=token_meta.get("name") or "",
        token_symbol=token_meta.get("symbol") or "",
        rugged=bool(data.get("rugged")),
        raw=data,
    )
