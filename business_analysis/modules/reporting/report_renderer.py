"""
report_renderer.py - Business Analysis Report Rendering

Renders an analysis report dict (``AnalysisReport.to_dict()``) as pretty
JSON or a self-contained themed HTML page.
"""

import html
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def _esc(value: Any) -> str:
    return html.escape(str(value if value is not None else ""))


class ReportRenderer:
    """Renders business analysis report dicts into output formats."""

    THEMES = {
        "professional": {
            "bg": "#f8fafc",
            "text": "#1e293b",
            "primary": "#2563eb",
            "card_bg": "#ffffff",
            "border": "#e2e8f0",
            "muted": "#64748b",
            "header_bg": "#1e40af",
            "header_text": "#ffffff",
        },
        "modern": {
            "bg": "#0f172a",
            "text": "#e2e8f0",
            "primary": "#38bdf8",
            "card_bg": "#1e293b",
            "border": "#334155",
            "muted": "#94a3b8",
            "header_bg": "#020617",
            "header_text": "#f1f5f9",
        },
    }

    SCORE_KEYS = [
        ("seo_score", "SEO"),
        ("ux_score", "User Experience"),
        ("local_listing_score", "Local Listing"),
    ]

    ISSUE_SECTIONS = [
        ("seo_issues", "SEO Issues"),
        ("ux_issues", "User Experience Issues"),
        ("local_listing_issues", "Local Listing Issues"),
    ]

    # score_color() labels to hex
    COLOR_HEX = {
        "green": "#16a34a",
        "lightgreen": "#65a30d",
        "yellow": "#eab308",
        "orange": "#f97316",
        "red": "#dc2626",
    }

    SEVERITY_BADGES = {
        "critical": "badge badge-critical",
        "high": "badge badge-high",
        "medium": "badge badge-medium",
        "low": "badge badge-low",
    }

    def __init__(self, company_name: str = "Business Analysis"):
        self._company_name = company_name

    # ------------------------------------------------------------------
    # Public rendering methods
    # ------------------------------------------------------------------

    def render_json(self, report_data: dict) -> str:
        """Export report data as pretty-printed JSON."""
        output = json.dumps(report_data, indent=2, default=str, ensure_ascii=False)
        logger.debug("JSON report rendered (%d chars)", len(output))
        return output

    def render_html(self, report_data: dict, template: str = "professional") -> str:
        """Generate a self-contained HTML report with embedded CSS."""
        logger.info("Rendering HTML report with template: %s", template)
        theme = self.THEMES.get(template, self.THEMES["professional"])

        profile = report_data.get("google_business_profile") or {}
        metadata = report_data.get("analysis_metadata") or {}
        name = profile.get("name", "Unknown Business")

        parts = [
            self._build_html_head(theme, name),
            self._build_header_html(theme, name, profile.get("address", "")),
            self._build_summary_html(theme, report_data),
            self._build_score_grid_html(report_data),
        ]
        for key, title in self.ISSUE_SECTIONS:
            issues = report_data.get(key) or []
            if issues:
                parts.append(self._build_issues_html(theme, title, issues))

        recommendations = report_data.get("recommendations") or []
        if recommendations:
            parts.append(self._build_recommendations_html(theme, recommendations))

        parts.append(self._build_footer_html(metadata))
        parts.append("</div></body></html>")

        output = "\n".join(parts)
        logger.info("HTML report rendered successfully (%d chars)", len(output))
        return output

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _score_color(self, report_data: dict, category: str, score: int) -> str:
        label = ((report_data.get("score_categories") or {}).get(category) or {}).get("color")
        if label in self.COLOR_HEX:
            return self.COLOR_HEX[label]
        if score >= 80:
            return self.COLOR_HEX["green"]
        if score >= 60:
            return self.COLOR_HEX["yellow"]
        return self.COLOR_HEX["red"]

    def _build_score_gauge_svg(self, score: int, color: str, size: int = 150) -> str:
        """Build an SVG circular gauge for the given score."""
        s = max(0, min(100, int(score or 0)))
        radius = (size // 2) - 10
        circumference = 2 * 3.14159 * radius
        offset = circumference - (s / 100.0) * circumference
        c = size // 2

        svg = []
        svg.append('<svg width="' + str(size) + '" height="' + str(size) + '" viewBox="0 0 ' + str(size) + ' ' + str(size) + '">')
        svg.append('<circle cx="' + str(c) + '" cy="' + str(c) + '" r="' + str(radius) + '" fill="none" stroke="#e2e8f0" stroke-width="8" />')
        svg.append('<circle cx="' + str(c) + '" cy="' + str(c) + '" r="' + str(radius) + '" fill="none" stroke="' + color + '" stroke-width="8" ')
        svg.append('stroke-linecap="round" stroke-dasharray="' + str(round(circumference, 2)) + '" ')
        svg.append('stroke-dashoffset="' + str(round(offset, 2)) + '" transform="rotate(-90 ' + str(c) + ' ' + str(c) + ')" />')
        svg.append('<text x="' + str(c) + '" y="' + str(c + 10) + '" text-anchor="middle" font-size="' + str(size // 4) + '" font-weight="bold" fill="' + color + '">' + str(s) + '</text>')
        svg.append('</svg>')
        return "".join(svg)

    def _build_html_head(self, theme: dict, name: str) -> str:
        """DOCTYPE, head with CSS, and the opening container."""
        css = []
        css.append("* { margin:0; padding:0; box-sizing:border-box; }")
        css.append("body { font-family: 'Segoe UI', system-ui, -apple-system, sans-serif; ")
        css.append("background-color: " + theme["bg"] + "; color: " + theme["text"] + "; line-height: 1.6; }")
        css.append(".report-container { max-width: 1100px; margin: 0 auto; padding: 30px; }")
        css.append(".header { padding: 30px; border-radius: 12px; margin-bottom: 30px; }")
        css.append(".section { background: " + theme["card_bg"] + "; border: 1px solid " + theme["border"] + "; ")
        css.append("border-radius: 10px; padding: 25px; margin-bottom: 25px; }")
        css.append(".section-title { font-size: 20px; font-weight: 700; margin-bottom: 18px; ")
        css.append("padding-bottom: 12px; border-bottom: 2px solid " + theme["primary"] + "; }")
        css.append(".summary { display: flex; gap: 30px; align-items: center; flex-wrap: wrap; }")
        css.append(".score-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 16px; margin-bottom: 25px; }")
        css.append(".score-card { background: " + theme["card_bg"] + "; border: 1px solid " + theme["border"] + "; ")
        css.append("border-radius: 10px; padding: 20px; text-align: center; }")
        css.append(".score-value { font-size: 32px; font-weight: 800; }")
        css.append(".score-label { font-size: 13px; color: " + theme["muted"] + "; text-transform: uppercase; }")
        css.append("table { width: 100%; border-collapse: collapse; margin: 12px 0; }")
        css.append("th { padding: 10px 14px; text-align: left; font-size: 12px; text-transform: uppercase; color: " + theme["muted"] + "; }")
        css.append("td { padding: 10px 14px; border-bottom: 1px solid " + theme["border"] + "; font-size: 14px; vertical-align: top; }")
        css.append(".badge { display: inline-block; padding: 3px 10px; border-radius: 20px; font-size: 12px; font-weight: 600; }")
        css.append(".badge-critical { background: #7f1d1d; color: #fff; }")
        css.append(".badge-high { background: #fef2f2; color: #dc2626; }")
        css.append(".badge-medium { background: #fffbeb; color: #d97706; }")
        css.append(".badge-low { background: #f0fdf4; color: #16a34a; }")
        css.append(".actions { margin: 6px 0 0 18px; font-size: 13px; color: " + theme["muted"] + "; }")
        css.append(".footer { text-align: center; padding: 20px; color: " + theme["muted"] + "; font-size: 12px; }")
        css.append("@media print { .section, .score-card { break-inside: avoid; } }")

        head = []
        head.append("<!DOCTYPE html>")
        head.append('<html lang="en">')
        head.append("<head>")
        head.append('<meta charset="UTF-8">')
        head.append('<meta name="viewport" content="width=device-width, initial-scale=1.0">')
        head.append("<title>Business Analysis - " + _esc(name) + "</title>")
        head.append("<style>")
        head.append("\n".join(css))
        head.append("</style>")
        head.append("</head>")
        head.append("<body>")
        head.append('<div class="report-container">')
        return "\n".join(head)

    def _build_header_html(self, theme: dict, name: str, address: str) -> str:
        parts = []
        parts.append('<div class="header" style="background-color: ' + theme["header_bg"] + '; color: ' + theme["header_text"] + ';">')
        parts.append('<p style="font-size:13px; opacity:0.85;">' + _esc(self._company_name) + "</p>")
        parts.append('<h1 style="font-size:26px; margin:0;">' + _esc(name) + "</h1>")
        if address:
            parts.append('<p style="font-size:13px; opacity:0.85; margin-top:4px;">' + _esc(address) + "</p>")
        parts.append("</div>")
        return "\n".join(parts)

    def _build_summary_html(self, theme: dict, report_data: dict) -> str:
        """Summary gauge plus headline metrics."""
        summary = int(report_data.get("summary_score") or 0)
        color = self._score_color(report_data, "summary", summary)
        metrics = report_data.get("summary_metrics") or {}

        parts = []
        parts.append('<div class="section">')
        parts.append('<h2 class="section-title" style="color: ' + theme["primary"] + ';">Summary</h2>')
        parts.append('<div class="summary">')
        parts.append("<div>" + self._build_score_gauge_svg(summary, color) + "</div>")
        parts.append("<div>")
        parts.append('<p><strong>Overall health:</strong> ' + _esc(metrics.get("overall_health", "")) + "</p>")
        parts.append('<p><strong>Issues found:</strong> ' + _esc(metrics.get("total_issues_found", 0))
                     + " (" + _esc(metrics.get("critical_issues", 0)) + " critical)</p>")
        parts.append('<p><strong>Categories needing work:</strong> '
                     + _esc(metrics.get("categories_needing_work", 0)) + " of "
                     + _esc(metrics.get("total_categories_reviewed", 0)) + "</p>")
        parts.append("</div>")
        parts.append("</div>")
        parts.append("</div>")
        return "\n".join(parts)

    def _build_score_grid_html(self, report_data: dict) -> str:
        parts = ['<div class="score-grid">']
        for key, label in self.SCORE_KEYS:
            score = int(report_data.get(key) or 0)
            color = self._score_color(report_data, key.replace("_score", ""), score)
            category = ((report_data.get("score_categories") or {})
                        .get(key.replace("_score", "")) or {}).get("label", "")
            parts.append('<div class="score-card" style="border-top:4px solid ' + color + ';">')
            parts.append('<div class="score-value" style="color:' + color + ';">' + str(score) + "</div>")
            parts.append('<div class="score-label">' + _esc(label) + "</div>")
            parts.append('<div style="color:' + color + '; font-weight:600;">' + _esc(category) + "</div>")
            parts.append("</div>")
        parts.append("</div>")
        return "\n".join(parts)

    def _build_issues_html(self, theme: dict, title: str, issues: list) -> str:
        parts = []
        parts.append('<div class="section">')
        parts.append('<h2 class="section-title" style="color: ' + theme["primary"] + ';">' + _esc(title) + "</h2>")
        parts.append("<table>")
        parts.append('<tr><th style="width:15%;">Severity</th><th>Issue</th></tr>')
        for issue in issues:
            severity = str(issue.get("severity", "low")).lower()
            badge = self.SEVERITY_BADGES.get(severity, "badge badge-low")
            parts.append("<tr>")
            parts.append('<td><span class="' + badge + '">' + _esc(severity.upper()) + "</span></td>")
            parts.append("<td>" + _esc(issue.get("message", "")) + "</td>")
            parts.append("</tr>")
        parts.append("</table>")
        parts.append("</div>")
        return "\n".join(parts)

    def _build_recommendations_html(self, theme: dict, recommendations: list) -> str:
        """Recommendations table with specific actions under each title."""
        parts = []
        parts.append('<div class="section">')
        parts.append('<h2 class="section-title" style="color: ' + theme["primary"] + ';">Recommendations</h2>')
        parts.append("<table>")
        parts.append("<tr>")
        parts.append('<th style="width:5%;">#</th>')
        parts.append('<th style="width:12%;">Priority</th>')
        parts.append('<th style="width:53%;">Recommendation</th>')
        parts.append('<th style="width:10%;">Impact</th>')
        parts.append('<th style="width:10%;">Effort</th>')
        parts.append('<th style="width:10%;">Timeframe</th>')
        parts.append("</tr>")

        for idx, rec in enumerate(recommendations, 1):
            priority = str(rec.get("priority", "medium")).lower()
            badge = self.SEVERITY_BADGES.get(priority, "badge badge-low")
            parts.append("<tr>")
            parts.append("<td>" + str(idx) + "</td>")
            parts.append('<td><span class="' + badge + '">' + _esc(priority.upper()) + "</span></td>")
            cell = "<strong>" + _esc(rec.get("title", "")) + "</strong><br>" + _esc(rec.get("description", ""))
            actions = rec.get("specific_actions") or []
            if actions:
                cell += '<ul class="actions">' + "".join("<li>" + _esc(a) + "</li>" for a in actions) + "</ul>"
            parts.append("<td>" + cell + "</td>")
            parts.append("<td>" + _esc(rec.get("impact", "")) + "</td>")
            parts.append("<td>" + _esc(rec.get("effort", "")) + "</td>")
            parts.append("<td>" + _esc(rec.get("timeframe", "")) + "</td>")
            parts.append("</tr>")

        parts.append("</table>")
        parts.append("</div>")
        return "\n".join(parts)

    def _build_footer_html(self, metadata: dict) -> str:
        parts = []
        parts.append('<div class="footer">')
        parts.append("<p>Report generated by <strong>" + _esc(self._company_name) + "</strong></p>")
        parts.append("<p>Analyzed at: " + _esc(metadata.get("analyzed_at", ""))
                     + " | Duration: " + _esc(metadata.get("analysis_duration_ms", 0)) + " ms</p>")
        keywords = metadata.get("keywords_analyzed") or []
        if keywords:
            parts.append("<p>Keywords: " + _esc(", ".join(keywords)) + "</p>")
        parts.append("</div>")
        return "\n".join(parts)
