"""Main application wiring for Business Analysis."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from business_analysis.modules.analysis import AnalysisReport, AnalysisRequest, BusinessAnalyzer

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = {
    "google_places": "GOOGLE_PLACES_API_KEY",
    "serpapi": "SERPAPI_KEY",
    "pagespeed": "PAGESPEED_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


class BusinessAnalysisApp:
    """Central application class that wires collaborators into the analyzer.

    Every collaborator is created lazily from its config section, so a
    missing API key only matters once that collaborator is used.

    Usage::

        app = BusinessAnalysisApp()
        app.initialize()
        report = await app.analyze(AnalysisRequest(place_id="ChIJ..."))
        status = app.get_status()
    """

    def __init__(
        self,
        config_path: str = "config/settings.yaml",
        env_path: str = ".env",
    ):
        self._config_path = config_path
        self._env_path = env_path
        self.config: dict[str, Any] = {}
        self._initialized = False
        self._db_ready = False
        self._llm_client = None
        self._places_client = None
        self._serp_client = None
        self._analyzer: Optional[BusinessAnalyzer] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load environment and configuration."""
        if self._initialized:
            return

        env_file = Path(self._env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", self._env_path)

        self.config = self._load_config()
        self._initialized = True
        logger.info("BusinessAnalysisApp initialised.")

    def _load_config(self) -> dict[str, Any]:
        """Load the YAML configuration file."""
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s; using defaults.", self._config_path)
            return {}
        with open(config_file, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    def _section(self, name: str) -> dict[str, Any]:
        return self.config.get(name) or {}

    def init_database(self) -> None:
        """Create the report tables on first use."""
        if self._db_ready:
            return
        from business_analysis.database import init_db
        db_cfg = self._section("database")
        init_db(database_url=db_cfg.get("url"), echo=db_cfg.get("echo", False))
        self._db_ready = True

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _get_llm_client(self):
        """Lazy-initialise and return the LLM client."""
        if self._llm_client is None:
            from business_analysis.integrations.llm_client import LLMClient
            llm_cfg = self._section("llm")
            primary = llm_cfg.get("primary", {})
            fallback = llm_cfg.get("fallback", {})
            cache_cfg = llm_cfg.get("cache", {})
            rl_cfg = self._section("rate_limits")

            self._llm_client = LLMClient(
                openai_model=primary.get("model", "gpt-4o-mini"),
                gemini_model=fallback.get("model", "gemini-2.0-flash"),
                max_tokens=primary.get("max_tokens", 2048),
                temperature=primary.get("temperature", 0.3),
                timeout=primary.get("timeout", 60),
                openai_rpm=rl_cfg.get("openai", {}).get("requests_per_minute", 60),
                gemini_rpm=rl_cfg.get("gemini", {}).get("requests_per_minute", 15),
                cache_enabled=cache_cfg.get("enabled", True),
                cache_ttl_hours=cache_cfg.get("ttl_hours", 24),
            )
        return self._llm_client

    def _get_places_client(self):
        if self._places_client is None:
            from business_analysis.integrations.google_places import GooglePlacesClient
            cfg = self._section("places")
            self._places_client = GooglePlacesClient(
                timeout=cfg.get("timeout", 30),
                requests_per_minute=cfg.get("requests_per_minute", 100),
            )
        return self._places_client

    def _build_website_auditor(self):
        from business_analysis.integrations.google_pagespeed import PageSpeedInsights
        from business_analysis.modules.website_audit import WebsiteAuditor
        cfg = self._section("website_audit")
        pagespeed = None
        if cfg.get("lighthouse", True):
            pagespeed = PageSpeedInsights(timeout=cfg.get("pagespeed_timeout", 120))
        return WebsiteAuditor(
            pagespeed=pagespeed,
            navigation_timeout=cfg.get("navigation_timeout_ms", 30000),
            headless=cfg.get("headless", True),
        )

    def _get_serp_client(self):
        if self._serp_client is None:
            from business_analysis.integrations.serpapi_client import SerpApiClient
            cfg = self._section("serp")
            self._serp_client = SerpApiClient(
                timeout=cfg.get("timeout", 30),
                max_retries=cfg.get("max_retries", 3),
                requests_per_minute=cfg.get("requests_per_minute", 30),
                language=cfg.get("language", "en"),
                country=cfg.get("country", "us"),
            )
        return self._serp_client

    def _build_ranking_analyzer(self):
        from business_analysis.modules.rank_tracker import SearchRankingAnalyzer
        cfg = self._section("serp")
        return SearchRankingAnalyzer(
            self._get_serp_client(), max_concurrency=cfg.get("max_concurrency", 3)
        )

    def _build_profile_enricher(self):
        if not self._section("serp").get("profile_enrichment", True):
            return None
        from business_analysis.modules.business_intel import SerpProfileEnricher
        return SerpProfileEnricher(self._get_serp_client())

    def _build_review_analyzer(self):
        from business_analysis.modules.reviews import ReviewSentimentAnalyzer
        cfg = self._section("reviews")
        return ReviewSentimentAnalyzer(
            self._get_llm_client(),
            max_reviews=cfg.get("max_reviews", 50),
            batch_size=cfg.get("batch_size", 10),
            batch_pause=cfg.get("batch_pause_seconds", 1.0),
        )

    def get_analyzer(self) -> BusinessAnalyzer:
        """Build (once) the orchestrator with all concrete collaborators."""
        self._ensure_initialized()
        if self._analyzer is None:
            from business_analysis.modules.business_intel import BusinessIntelligence
            from business_analysis.modules.analysis import ReportAssembler
            places = self._get_places_client()
            self._analyzer = BusinessAnalyzer(
                resolver=places,
                website_auditor=self._build_website_auditor(),
                ranking_analyzer=self._build_ranking_analyzer(),
                review_analyzer=self._build_review_analyzer(),
                inferrer=BusinessIntelligence(self._get_llm_client()),
                enricher=self._build_profile_enricher(),
                assembler=ReportAssembler(photo_url=places.photo_url),
            )
        return self._analyzer

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(self, request: AnalysisRequest, save: bool = False) -> AnalysisReport:
        """Run one analysis; optionally store the report."""
        report = await self.get_analyzer().analyze(request)
        if save:
            from business_analysis.models import save_report
            self.init_database()
            record_id = save_report(report.to_dict())
            logger.info("Report stored as record %d", record_id)
        if self._llm_client is not None:
            logger.info("LLM usage so far: %s", self._llm_client.get_usage_summary())
        return report

    def history(self, limit: int = 20, place_id: Optional[str] = None) -> list[dict[str, Any]]:
        from business_analysis.models import list_reports
        self._ensure_initialized()
        self.init_database()
        return list_reports(limit=limit, place_id=place_id)

    def load_report(self, record_id: int) -> Optional[dict[str, Any]]:
        from business_analysis.models import load_report
        self._ensure_initialized()
        self.init_database()
        return load_report(record_id)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict[str, dict[str, Any]]:
        """Return health status of configuration, API keys and the database."""
        self._ensure_initialized()
        status: dict[str, dict[str, Any]] = {}

        status["config"] = {
            "status": "ok" if self.config else "warning",
            "details": f"{len(self.config)} sections loaded" if self.config else "no config",
        }

        for name, env_var in API_KEY_ENV_VARS.items():
            configured = bool(os.getenv(env_var))
            status[name] = {
                "status": "ok" if configured else "warning",
                "details": f"{env_var} {'set' if configured else 'not set'}",
            }

        llm_ok = status["openai"]["status"] == "ok" or status["gemini"]["status"] == "ok"
        status["llm"] = {
            "status": "ok" if llm_ok else "warning",
            "details": "provider available" if llm_ok else "review insights and inference will use fallbacks",
        }

        try:
            from sqlalchemy import text
            from business_analysis.database import get_session
            self.init_database()
            with get_session() as session:
                count = session.execute(text("SELECT count(*) FROM analysis_reports")).scalar()
            status["database"] = {"status": "ok", "details": f"{count} stored reports"}
        except Exception as exc:
            status["database"] = {"status": "error", "details": str(exc)}

        return status

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Call initialize() before using the application.")
