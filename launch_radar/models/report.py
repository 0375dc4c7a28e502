from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from launch_radar.models.base import Base


class MonitoredReport(Base):
    """One row per new-pool report, mirrors MonitoredTokenReport."""

    __tablename__ = "monitored_reports"

    id: Mapped[int] = mapped_column(primary_key=True)
    signature: Mapped[str] = mapped_column(String(100), unique=True)
    mint_address: Mapped[str] = mapped_column(String(64))
    creator: Mapped[str] = mapped_column(String(64))
    creator_rug_risk: Mapped[bool] = mapped_column(Boolean, default=False)
    captured_at: Mapped[datetime] = mapped_column(DateTime)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    decimals: Mapped[int] = mapped_column(Integer)
    lp_amount: Mapped[float] = mapped_column(Float)
    dev_holding_pct: Mapped[float] = mapped_column(Float)
    dev_has_sold: Mapped[bool] = mapped_column(Boolean, default=False)
    top10_holders_pct: Mapped[float] = mapped_column(Float)
    bundled_amount: Mapped[float] = mapped_column(Float)
    bundled_pct: Mapped[float] = mapped_column(Float)

    # Full camelCase report payload, rugCheckRaw included when present
    payload: Mapped[dict] = mapped_column(JSON)

    __table_args__ = (
        Index("idx_reports_mint", "mint_address"),
        Index("idx_reports_creator", "creator"),
    )
