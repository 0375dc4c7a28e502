"""Pydantic models for Rugcheck.xyz API responses."""

from typing import Any

from pydantic import BaseModel


class RugcheckRisk(BaseModel):
    """Individual risk detected by Rugcheck."""

    name: str = "unknown"
    description: str = ""
    level: str = "info"  # "warn", "danger", "info"
    score: int = 0


class RugcheckReport(BaseModel):
    """Full token report from Rugcheck.xyz.

    score: raw risk score, unbounded, higher = more dangerous (10000+ is bad).
    score_normalised: same score squashed into 0-100.
    raw: the untouched JSON payload, kept for the final report.
    """

    score: int = 0
    score_normalised: int = 0
    risks: list[RugcheckRisk] = []
    mint: str = ""
    token_name: str = ""
    token_symbol: str = ""
    rugged: bool = False
    raw: dict[str, Any] = {}
