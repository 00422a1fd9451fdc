"""Stored business analysis reports."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, Integer, JSON, String, select
from sqlalchemy.orm import Mapped, mapped_column

from business_analysis.database import Base, get_session

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisRecord(Base):
    """One completed analysis run: headline scores plus the full report JSON."""

    __tablename__ = "analysis_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    place_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    business_name: Mapped[str] = mapped_column(String(500), nullable=False)
    industry: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    summary_score: Mapped[int] = mapped_column(Integer, nullable=False)
    seo_score: Mapped[int] = mapped_column(Integer, nullable=False)
    ux_score: Mapped[int] = mapped_column(Integer, nullable=False)
    local_listing_score: Mapped[int] = mapped_column(Integer, nullable=False)
    ai_inferred: Mapped[bool] = mapped_column(Boolean, default=False)
    report_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<AnalysisRecord id={self.id} place_id={self.place_id!r} "
            f"summary={self.summary_score}>"
        )

    def to_summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "place_id": self.place_id,
            "business_name": self.business_name,
            "industry": self.industry,
            "summary_score": self.summary_score,
            "seo_score": self.seo_score,
            "ux_score": self.ux_score,
            "local_listing_score": self.local_listing_score,
            "ai_inferred": self.ai_inferred,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def save_report(report: dict[str, Any]) -> int:
    """Persist a report dict (``AnalysisReport.to_dict()``) and return its id."""
    profile = report.get("google_business_profile") or {}
    metadata = report.get("analysis_metadata") or {}
    record = AnalysisRecord(
        place_id=profile.get("place_id") or "",
        business_name=profile.get("name") or "",
        industry=metadata.get("industry"),
        summary_score=int(report.get("summary_score") or 0),
        seo_score=int(report.get("seo_score") or 0),
        ux_score=int(report.get("ux_score") or 0),
        local_listing_score=int(report.get("local_listing_score") or 0),
        ai_inferred=bool(metadata.get("ai_inferred")),
        report_json=report,
    )
    with get_session() as session:
        session.add(record)
        session.flush()
        record_id = record.id
    logger.info("Saved analysis report %d for %s", record_id, record.business_name)
    return record_id


def list_reports(limit: int = 20, place_id: Optional[str] = None) -> list[dict[str, Any]]:
    """Most recent stored reports first, optionally for a single place."""
    stmt = select(AnalysisRecord)
    if place_id:
        stmt = stmt.where(AnalysisRecord.place_id == place_id)
    stmt = stmt.order_by(
        AnalysisRecord.created_at.desc(), AnalysisRecord.id.desc()
    ).limit(limit)
    with get_session() as session:
        return [r.to_summary() for r in session.scalars(stmt)]


def load_report(record_id: int) -> Optional[dict[str, Any]]:
    with get_session() as session:
        record = session.get(AnalysisRecord, record_id)
        return dict(record.report_json) if record else None
