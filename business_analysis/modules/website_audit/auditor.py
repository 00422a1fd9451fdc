"""Website auditor: render a business website and extract SEO and UX signals.

Playwright loads the page (status, load time, mobile layout check),
BeautifulSoup extracts on-page signals from the rendered HTML, and
PageSpeed Insights supplies Lighthouse category scores.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from business_analysis.integrations.google_pagespeed import PageSpeedInsights
from business_analysis.modules.analysis.entities import (
    AnalysisFailure,
    BusinessContext,
    ContactInfo,
    ContextAnalysis,
    ImageInfo,
    MobileAnalysis,
    PageContent,
    PerformanceMetrics,
    TechnicalSeo,
    UxSignals,
    WebsiteAnalysis,
    WebsiteResult,
)
from business_analysis.utils.helpers import contains_ci, normalize_website

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_NAVIGATION_TIMEOUT = 30_000  # ms
_DESKTOP_VIEWPORT = {"width": 1366, "height": 768}
_MOBILE_VIEWPORT = {"width": 375, "height": 667}
_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}")
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

CTA_KEYWORDS = ["order", "call", "contact", "book", "schedule", "buy", "get quote", "learn more"]
CONTACT_FORM_KEYWORDS = ["contact", "message", "inquiry"]
SOCIAL_DOMAINS = ["facebook", "twitter", "instagram", "linkedin", "youtube", "tiktok"]
CHAT_MARKERS = ["chat", "messenger"]
TESTIMONIAL_MARKERS = ["testimonial", "review"]
FAQ_TEXT_MARKERS = ["faq", "frequently asked"]
FAQ_CLASS_MARKERS = ["faq", "accordion"]


# ---------------------------------------------------------------------------
# HTML extraction (pure)
# ---------------------------------------------------------------------------

def _class_string(tag) -> str:
    classes = tag.get("class") or []
    return " ".join(classes).lower() if isinstance(classes, list) else str(classes).lower()


def _own_text(tag) -> str:
    return " ".join(tag.find_all(string=True, recursive=False)).lower()


def _count_marked(soup: BeautifulSoup, text_markers: list[str], class_markers: list[str]) -> int:
    def _matches(tag) -> bool:
        own = _own_text(tag)
        cls = _class_string(tag)
        return any(m in own for m in text_markers) or any(m in cls for m in class_markers)

    return len(soup.find_all(_matches))


def _dedupe(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v.strip() for v in values))


def extract_page_content(soup: BeautifulSoup, context: BusinessContext) -> PageContent:
    """On-page SEO signals plus business-context matches."""
    title = soup.title.get_text(strip=True) if soup.title else ""
    meta = soup.find("meta", attrs={"name": "description"})
    meta_description = (meta.get("content") or "").strip() if meta else ""

    images = tuple(
        ImageInfo(src=img.get("src") or "", alt=img.get("alt") or "",
                  has_alt=bool((img.get("alt") or "").strip()))
        for img in soup.find_all("img")
    )
    # rel="shortcut icon" parses as ["shortcut", "icon"]
    has_favicon = any(
        "icon" in [v.lower() for v in link.get("rel") or []]
        for link in soup.find_all("link")
    )
    structured = soup.find_all("script", attrs={"type": "application/ld+json"})

    body = soup.body or soup
    text = body.get_text(" ", strip=True)
    ctas = [
        el for el in soup.find_all(["button", "a"])
        if any(k in el.get_text(" ").lower() for k in CTA_KEYWORDS)
    ]

    return PageContent(
        title=title,
        meta_description=meta_description,
        h1_elements=tuple(h.get_text(strip=True) for h in soup.find_all("h1")),
        h2_elements=tuple(h.get_text(strip=True) for h in soup.find_all("h2")),
        images=images,
        has_favicon=has_favicon,
        structured_data_count=sum(1 for s in structured if (s.string or "").strip()),
        word_count=len(text.split()),
        cta_elements=len(ctas),
        contact_info=ContactInfo(
            phones=_dedupe(PHONE_RE.findall(text)),
            emails=_dedupe(EMAIL_RE.findall(text)),
        ),
        context_analysis=ContextAnalysis(
            business_name_in_title=contains_ci(title, context.business_name),
            location_in_title=contains_ci(title, context.location),
            business_name_in_meta=contains_ci(meta_description, context.business_name),
            location_in_meta=contains_ci(meta_description, context.location),
            industry_keywords_found=contains_ci(text, context.industry),
            local_keywords_found=contains_ci(text, context.location),
        ),
    )


def extract_technical_seo(soup: BeautifulSoup, url: str) -> TechnicalSeo:
    canonical = soup.find("link", rel="canonical")
    robots = soup.find("meta", attrs={"name": "robots"})
    return TechnicalSeo(
        is_secure=url.lower().startswith("https://"),
        has_meta_viewport=soup.find("meta", attrs={"name": "viewport"}) is not None,
        has_canonical=canonical is not None,
        robots_content=(robots.get("content") or "") if robots else "",
        canonical_url=canonical.get("href") if canonical else None,
    )


def extract_ux_signals(soup: BeautifulSoup) -> UxSignals:
    forms = soup.find_all("form")
    contact_forms = [
        f for f in forms
        if any(k in f.get_text(" ").lower() for k in CONTACT_FORM_KEYWORDS)
    ]
    chat = soup.find_all(
        lambda tag: any(m in (tag.get("id") or "").lower() or m in _class_string(tag)
                        for m in CHAT_MARKERS)
    )
    social = [
        a for a in soup.find_all("a", href=True)
        if any(d in a["href"].lower() for d in SOCIAL_DOMAINS)
    ]
    return UxSignals(
        forms=len(forms),
        contact_forms=len(contact_forms),
        chat_widgets=len(chat),
        social_links=len(social),
        testimonial_elements=_count_marked(soup, TESTIMONIAL_MARKERS, TESTIMONIAL_MARKERS),
        faq_elements=_count_marked(soup, FAQ_TEXT_MARKERS, FAQ_CLASS_MARKERS),
    )


def parse_html(html: str, url: str, context: BusinessContext):
    """Parse rendered HTML into (page content, technical SEO, UX signals)."""
    soup = BeautifulSoup(html, "html.parser")
    return (
        extract_page_content(soup, context),
        extract_technical_seo(soup, url),
        extract_ux_signals(soup),
    )


# ---------------------------------------------------------------------------
# Auditor
# ---------------------------------------------------------------------------

class WebsiteAuditor:
    """Audit one website for the ``WebsiteAuditor`` protocol.

    Usage::

        auditor = WebsiteAuditor(pagespeed=PageSpeedInsights())
        result = await auditor.analyze("https://example.com",
                                       BusinessContext("Joe's Pizza", "Austin, TX"))
    """

    def __init__(
        self,
        pagespeed: Optional[PageSpeedInsights] = None,
        navigation_timeout: int = _NAVIGATION_TIMEOUT,
        headless: bool = True,
    ):
        self._pagespeed = pagespeed
        self._navigation_timeout = navigation_timeout
        self._headless = headless

    async def analyze(self, url: str, context: BusinessContext) -> WebsiteResult:
        start_ts = time.monotonic()
        target = (normalize_website(url) or "").rstrip("/")
        logger.info("Starting website analysis for %s", target)

        try:
            status, load_ms, html, fits = await self._render(target)
            if status is None:
                raise RuntimeError("Failed to load website")
            if status >= 400:
                raise RuntimeError(f"Website returned status code: {status}")

            page_content, technical, ux = parse_html(html, target, context)
            scores = await self._lighthouse(target)
        except (PlaywrightError, RuntimeError) as exc:
            logger.error("Website analysis failed for %s: %s", target, exc)
            return AnalysisFailure(source="website", error=str(exc), url=target)

        analysis = WebsiteAnalysis(
            url=target,
            status_code=status,
            page_content=page_content,
            technical_seo=technical,
            ux_analysis=ux,
            mobile_analysis=MobileAnalysis(
                is_mobile_friendly=technical.has_meta_viewport and fits,
                has_viewport=technical.has_meta_viewport,
                fits_in_viewport=fits,
            ),
            performance_metrics=PerformanceMetrics(
                page_load_time_ms=load_ms,
                lighthouse_performance=scores.get("performance"),
                lighthouse_seo=scores.get("seo"),
                lighthouse_accessibility=scores.get("accessibility"),
                lighthouse_best_practices=scores.get("best-practices"),
            ),
            analysis_duration_ms=int((time.monotonic() - start_ts) * 1000),
        )
        logger.info(
            "Website analysis completed for %s: status=%s title=%s perf=%s",
            target, status, bool(page_content.title), scores.get("performance"),
        )
        return analysis

    async def _render(self, url: str) -> tuple[Optional[int], int, str, bool]:
        """Load *url* in Chromium; returns (status, load ms, html, fits mobile viewport)."""
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=self._headless)
            context = await browser.new_context(
                user_agent=_USER_AGENT, viewport=_DESKTOP_VIEWPORT
            )
            try:
                page = await context.new_page()
                t0 = time.monotonic()
                resp = await page.goto(
                    url, wait_until="networkidle", timeout=self._navigation_timeout
                )
                load_ms = int((time.monotonic() - t0) * 1000)
                if resp is None:
                    return None, load_ms, "", False
                html = await page.content()

                await page.set_viewport_size(_MOBILE_VIEWPORT)
                fits = await page.evaluate(
                    "() => document.body ? document.body.scrollWidth <= window.innerWidth : false"
                )
                return resp.status, load_ms, html, bool(fits)
            finally:
                await context.close()
                await browser.close()

    async def _lighthouse(self, url: str) -> dict[str, Optional[int]]:
        if self._pagespeed is None:
            return {}
        return await self._pagespeed.lighthouse_scores(url)
