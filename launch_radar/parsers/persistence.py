"""Report persistence — append-only sinks for MonitoredTokenReport.

JsonFileReportSink keeps a JSON array on disk (one element per report).
DatabaseReportSink writes one row per report through SQLAlchemy.
Both are safe under concurrent appends from the monitor's pipeline tasks.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Protocol

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from launch_radar.models.report import MonitoredReport
from launch_radar.parsers.report import MonitoredTokenReport


class ReportSink(Protocol):
    async def append(self, report: MonitoredTokenReport) -> bool: ...

    async def close(self) -> None: ...


class JsonFileReportSink:
    """Append reports to a JSON array file.

    Read-modify-write is serialized by an asyncio.Lock and the new file is
    swapped in with os.replace, so a crash never leaves a half-written array.

    Every append rereads and rewrites the whole array, so total write cost
    grows quadratically with the report count. Fine for a monitoring session;
    use DatabaseReportSink for long-lived collection.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def append(self, report: MonitoredTokenReport) -> bool:
        payload = report.to_payload()
        async with self._lock:
            try:
                await asyncio.to_thread(self._append_sync, payload)
            except (OSError, ValueError) as e:
                logger.error(f"[SINK] Failed to append {report.signature[:16]} to {self._path}: {e}")
                return False
        logger.debug(f"[SINK] Appended report for {report.base_info.mint_address[:12]}")
        return True

    def _append_sync(self, payload: dict) -> None:
        reports = self._read_all()
        reports.append(payload)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(reports, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)

    def _read_all(self) -> list[dict]:
        if not self._path.exists():
            return []
        text = self._path.read_text(encoding="utf-8").strip()
        if not text:
            return []
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError(f"{self._path} does not hold a JSON array")
        return data

    def load(self) -> list[dict]:
        """All stored report payloads, oldest first."""
        return self._read_all()

    async def close(self) -> None:
        # every append already closed its file
        return None


def report_to_row(report: MonitoredTokenReport) -> MonitoredReport:
    """Map the pydantic report onto its SQLAlchemy row."""
    bundled = report.distribution_metrics.bundled_holdings
    return MonitoredReport(
        signature=report.signature,
        mint_address=report.base_info.mint_address,
        creator=report.creator,
        creator_rug_risk=report.creator_rug_risk,
        # naive UTC, the DateTime columns carry no tz
        captured_at=report.timestamp.replace(tzinfo=None),
        decimals=report.base_info.decimals,
        lp_amount=report.base_info.lp_amount,
        dev_holding_pct=report.risk_metrics.dev_holding_percentage,
        dev_has_sold=report.risk_metrics.dev_has_sold_tokens,
        top10_holders_pct=report.distribution_metrics.top10_holders_percentage,
        bundled_amount=bundled.total_bundled_amount,
        bundled_pct=bundled.bundled_percentage,
        payload=report.to_payload(),
    )


class DatabaseReportSink:
    """Insert one monitored_reports row per report (signature is unique)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        # Owned engine, disposed on close()
        self._engine = engine

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def append(self, report: MonitoredTokenReport) -> bool:
        async with self._session_factory() as session:
            session.add(report_to_row(report))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.warning(f"[SINK] Report for {report.signature[:16]} already stored")
                return False
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"[SINK] DB insert failed for {report.signature[:16]}: {e}")
                return False
        return True
