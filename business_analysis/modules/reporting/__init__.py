"""Report rendering (JSON and HTML)."""

from business_analysis.modules.reporting.report_renderer import ReportRenderer

__all__ = ["ReportRenderer"]
