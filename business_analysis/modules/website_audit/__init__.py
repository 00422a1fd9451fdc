"""Website rendering and on-page SEO / UX signal extraction."""

from business_analysis.modules.website_audit.auditor import WebsiteAuditor, parse_html

__all__ = ["WebsiteAuditor", "parse_html"]
