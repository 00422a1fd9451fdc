"""SQLAlchemy ORM models; importing this package populates Base.metadata."""

from business_analysis.models.analysis_record import (
    AnalysisRecord,
    list_reports,
    load_report,
    save_report,
)

__all__ = [
    "AnalysisRecord",
    "list_reports",
    "load_report",
    "save_report",
]
