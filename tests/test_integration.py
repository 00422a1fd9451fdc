"""Integration tests for Business Analysis.

Covers database setup, package imports, application wiring, configuration
loading, CLI commands via CliRunner, and syntax validation of every Python
file in the project.
"""

import ast
import importlib
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# ---------------------------------------------------------------------------
# Project root (conftest.py already puts it on sys.path)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent

SAMPLE_REPORT = {
    "summary_score": 72,
    "seo_score": 70,
    "ux_score": 75,
    "local_listing_score": 70,
    "score_categories": {
        "summary": {"label": "Fair", "color": "yellow"},
        "seo": {"label": "Fair", "color": "yellow"},
        "ux": {"label": "Fair", "color": "yellow"},
        "local_listing": {"label": "Fair", "color": "yellow"},
    },
    "google_business_profile": {"place_id": "ChIJabc123", "name": "Joe's Pizza"},
    "seo_issues": [{"code": "no_faq", "type": "seo", "severity": "low",
                    "message": "No FAQ section found"}],
    "ux_issues": [],
    "local_listing_issues": [],
    "recommendations": [{"priority": "high", "title": "Add Schema Markup",
                         "timeframe": "1 week"}],
    "analysis_metadata": {"industry": "restaurant", "keywords_analyzed": ["pizza"],
                          "ai_inferred": True, "analysis_duration_ms": 1200},
}


# ===========================================================================
# 1. Database setup
# ===========================================================================
class TestDatabaseSetup:
    """Verify that the database can be initialised with in-memory SQLite."""

    def test_init_db_creates_tables(self, test_db):
        from business_analysis.database import get_engine
        from sqlalchemy import inspect

        table_names = inspect(get_engine()).get_table_names()
        assert "analysis_reports" in table_names

    def test_get_session_context_manager(self, test_db):
        from business_analysis.database import get_session
        from sqlalchemy import text as sa_text

        with get_session() as session:
            row = session.execute(sa_text("SELECT 1")).fetchone()
            assert row[0] == 1

    def test_session_rolls_back_on_error(self, test_db):
        from business_analysis.database import get_session
        from business_analysis.models import AnalysisRecord, list_reports

        with pytest.raises(RuntimeError):
            with get_session() as session:
                session.add(AnalysisRecord(
                    place_id="ChIJx", business_name="X", summary_score=1, seo_score=1,
                    ux_score=1, local_listing_score=1, report_json={},
                ))
                session.flush()
                raise RuntimeError("abort")
        assert list_reports() == []

    def test_database_url_from_environment(self, tmp_path, monkeypatch):
        from business_analysis.database import get_engine, init_db

        db_file = tmp_path / "nested" / "reports.db"
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
        init_db()
        assert str(get_engine().url).endswith("reports.db")
        assert db_file.parent.is_dir()
        assert get_engine() is get_engine()


# ===========================================================================
# 2. Module imports
# ===========================================================================
class TestModuleImports:
    """All packages should be importable and export their entry points."""

    @pytest.mark.parametrize("module_path,names", [
        ("business_analysis.modules.analysis",
         ["BusinessAnalyzer", "ScoringEngine", "RecommendationEngine", "ReportAssembler",
          "AnalysisRequest", "settle_all"]),
        ("business_analysis.modules.website_audit", ["WebsiteAuditor", "parse_html"]),
        ("business_analysis.modules.rank_tracker", ["SearchRankingAnalyzer"]),
        ("business_analysis.modules.reviews", ["ReviewSentimentAnalyzer"]),
        ("business_analysis.modules.business_intel", ["BusinessIntelligence", "SerpProfileEnricher"]),
        ("business_analysis.modules.reporting", ["ReportRenderer"]),
        ("business_analysis.models", ["AnalysisRecord", "save_report", "list_reports",
                                      "load_report"]),
        ("business_analysis.integrations.llm_client", ["LLMClient"]),
        ("business_analysis.integrations.google_places", ["GooglePlacesClient"]),
        ("business_analysis.integrations.serpapi_client", ["SerpApiClient"]),
        ("business_analysis.integrations.google_pagespeed", ["PageSpeedInsights"]),
    ])
    def test_module_importable(self, module_path, names):
        mod = importlib.import_module(module_path)
        for name in names:
            assert hasattr(mod, name), name + " not found in " + module_path


# ===========================================================================
# 3. Application wiring
# ===========================================================================
class TestBusinessAnalysisApp:
    """BusinessAnalysisApp should load config and report status."""

    @pytest.fixture()
    def app_instance(self, tmp_path, monkeypatch):
        from business_analysis.app import API_KEY_ENV_VARS, BusinessAnalysisApp

        for env_var in API_KEY_ENV_VARS.values():
            monkeypatch.delenv(env_var, raising=False)
        config = tmp_path / "settings.yaml"
        config.write_text(
            "database:\n  url: 'sqlite:///:memory:'\nreviews:\n  max_reviews: 5\n",
            encoding="utf-8",
        )
        application = BusinessAnalysisApp(config_path=str(config),
                                          env_path=str(tmp_path / ".env"))
        application.initialize()
        return application

    def test_requires_initialize(self):
        from business_analysis.app import BusinessAnalysisApp

        with pytest.raises(RuntimeError):
            BusinessAnalysisApp().get_status()

    def test_missing_config_uses_defaults(self, tmp_path):
        from business_analysis.app import BusinessAnalysisApp

        application = BusinessAnalysisApp(config_path=str(tmp_path / "missing.yaml"),
                                          env_path=str(tmp_path / ".env"))
        application.initialize()
        assert application.config == {}

    def test_get_status(self, app_instance, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        status = app_instance.get_status()
        assert status["config"]["status"] == "ok"
        assert status["google_places"]["status"] == "warning"
        assert status["openai"]["status"] == "ok"
        assert status["llm"]["status"] == "ok"
        assert status["database"] == {"status": "ok", "details": "0 stored reports"}

    def test_get_analyzer_is_cached(self, app_instance):
        from business_analysis.modules.analysis import BusinessAnalyzer

        analyzer = app_instance.get_analyzer()
        assert isinstance(analyzer, BusinessAnalyzer)
        assert app_instance.get_analyzer() is analyzer

    @pytest.mark.asyncio
    async def test_analyze_with_save(self, app_instance):
        from business_analysis.modules.analysis import AnalysisRequest

        report = MagicMock()
        report.to_dict.return_value = SAMPLE_REPORT
        analyzer = MagicMock()
        analyzer.analyze = AsyncMock(return_value=report)
        app_instance._analyzer = analyzer

        result = await app_instance.analyze(AnalysisRequest(place_id="ChIJabc123"), save=True)
        assert result is report
        history = app_instance.history()
        assert len(history) == 1
        assert history[0]["business_name"] == "Joe's Pizza"
        assert history[0]["ai_inferred"] is True

        loaded = app_instance.load_report(history[0]["id"])
        assert loaded["summary_score"] == SAMPLE_REPORT["summary_score"]
        assert app_instance.load_report(history[0]["id"] + 1) is None

    def test_profile_enricher_wired(self, app_instance):
        from business_analysis.modules.business_intel import SerpProfileEnricher

        assert isinstance(app_instance.get_analyzer()._enricher, SerpProfileEnricher)

    def test_profile_enrichment_can_be_disabled(self, app_instance):
        app_instance.config["serp"] = {"profile_enrichment": False}
        assert app_instance.get_analyzer()._enricher is None


# ===========================================================================
# 4. Settings YAML
# ===========================================================================
class TestSettingsYaml:
    """Configuration file should be loadable."""

    def _load(self):
        import yaml
        with open(PROJECT_ROOT / "config" / "settings.yaml") as fh:
            return yaml.safe_load(fh)

    def test_settings_parseable(self):
        assert isinstance(self._load(), dict)

    def test_settings_has_required_sections(self):
        config = self._load()
        for section in ("places", "serp", "website_audit", "reviews", "llm", "database"):
            assert section in config, "Missing config section: " + section


# ===========================================================================
# 5. CLI commands (CliRunner)
# ===========================================================================
class TestCLICommands:
    """CLI help and command behaviour with the application patched out."""

    def _get_runner_and_app(self):
        from typer.testing import CliRunner
        from business_analysis.cli import app
        return CliRunner(), app

    @staticmethod
    def _fake_app(report_data=None, error=None):
        report = MagicMock()
        report.to_dict.return_value = report_data or SAMPLE_REPORT
        fake = MagicMock()
        fake.analyze = AsyncMock(return_value=report, side_effect=error)
        fake.history.return_value = []
        fake.get_status.return_value = {
            "config": {"status": "ok", "details": "7 sections loaded"},
            "serpapi": {"status": "warning", "details": "SERPAPI_KEY not set"},
            "database": {"status": "error", "details": "locked"},
        }
        return fake

    def test_main_help(self):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, ["--help"])
        assert result.exit_code == 0
        assert "Business Analysis" in result.output

    @pytest.mark.parametrize("command", ["analyze", "history", "show", "status"])
    def test_command_help(self, command):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, [command, "--help"])
        assert result.exit_code == 0, (
            "Command '" + command + "' --help failed with exit code "
            + str(result.exit_code) + ": " + result.output
        )

    def test_analyze_json(self):
        runner, cli_app = self._get_runner_and_app()
        fake = self._fake_app()
        with patch("business_analysis.cli._get_app", return_value=fake):
            result = runner.invoke(cli_app, ["analyze", "--place-id", "ChIJabc123",
                                             "-k", "pizza", "-k", "slices", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["summary_score"] == 72
        request = fake.analyze.call_args.args[0]
        assert request.place_id == "ChIJabc123"
        assert request.keywords == ("pizza", "slices")
        assert fake.analyze.call_args.kwargs == {"save": False}

    def test_analyze_table_output_and_files(self, tmp_path):
        runner, cli_app = self._get_runner_and_app()
        json_path = tmp_path / "report.json"
        html_path = tmp_path / "report.html"
        with patch("business_analysis.cli._get_app", return_value=self._fake_app()):
            result = runner.invoke(cli_app, [
                "analyze", "--name", "Joe's Pizza", "--location", "Austin, TX",
                "--output", str(json_path), "--html", str(html_path), "--save",
            ])
        assert result.exit_code == 0, result.output
        assert "Add Schema Markup" in result.output
        assert "Analysis complete" in result.output
        assert json.loads(json_path.read_text(encoding="utf-8"))["seo_score"] == 70
        assert html_path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

    def test_analyze_invalid_request(self):
        runner, cli_app = self._get_runner_and_app()
        with patch("business_analysis.cli._get_app") as get_app:
            result = runner.invoke(cli_app, ["analyze", "--name", "Joe's Pizza"])
        assert result.exit_code == 1
        assert "Invalid request" in result.output
        get_app.assert_not_called()

    def test_analyze_not_found(self):
        from business_analysis.errors import BusinessNotFoundError

        runner, cli_app = self._get_runner_and_app()
        fake = self._fake_app(error=BusinessNotFoundError())
        with patch("business_analysis.cli._get_app", return_value=fake):
            result = runner.invoke(cli_app, ["analyze", "--place-id", "ChIJmissing"])
        assert result.exit_code == 1
        assert "Business not found" in result.output

    def test_history_empty(self):
        runner, cli_app = self._get_runner_and_app()
        with patch("business_analysis.cli._get_app", return_value=self._fake_app()):
            result = runner.invoke(cli_app, ["history"])
        assert result.exit_code == 0
        assert "No stored reports" in result.output

    def test_history_rows(self):
        runner, cli_app = self._get_runner_and_app()
        fake = self._fake_app()
        fake.history.return_value = [{
            "id": 3, "business_name": "Joe's Pizza", "summary_score": 72, "seo_score": 70,
            "ux_score": 75, "local_listing_score": 70, "created_at": "2024-05-01T12:00:00",
        }]
        with patch("business_analysis.cli._get_app", return_value=fake):
            result = runner.invoke(cli_app, ["history", "--limit", "5"])
        assert result.exit_code == 0
        assert "Joe's Pizza" in result.output
        fake.history.assert_called_once_with(limit=5, place_id=None)

    def test_show_stored_report(self, tmp_path):
        runner, cli_app = self._get_runner_and_app()
        fake = self._fake_app()
        fake.load_report.return_value = SAMPLE_REPORT
        html_path = tmp_path / "stored.html"
        with patch("business_analysis.cli._get_app", return_value=fake):
            result = runner.invoke(cli_app, ["show", "3", "--html", str(html_path)])
        assert result.exit_code == 0, result.output
        assert "Add Schema Markup" in result.output
        assert html_path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
        fake.load_report.assert_called_once_with(3)

    def test_show_json(self):
        runner, cli_app = self._get_runner_and_app()
        fake = self._fake_app()
        fake.load_report.return_value = SAMPLE_REPORT
        with patch("business_analysis.cli._get_app", return_value=fake):
            result = runner.invoke(cli_app, ["show", "3", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["seo_score"] == 70

    def test_show_missing_report(self):
        runner, cli_app = self._get_runner_and_app()
        fake = self._fake_app()
        fake.load_report.return_value = None
        with patch("business_analysis.cli._get_app", return_value=fake):
            result = runner.invoke(cli_app, ["show", "99"])
        assert result.exit_code == 1
        assert "No stored report with id 99" in result.output

    def test_status(self):
        runner, cli_app = self._get_runner_and_app()
        with patch("business_analysis.cli._get_app", return_value=self._fake_app()):
            result = runner.invoke(cli_app, ["status"])
        assert result.exit_code == 0
        assert "Serpapi" in result.output
        assert "SERPAPI_KEY not set" in result.output


# ===========================================================================
# 6. All Python files syntax validation
# ===========================================================================
class TestAllPythonFilesSyntax:
    """Every .py file in business_analysis/ and tests/ should pass ast.parse."""

    def _collect_python_files(self):
        files = []
        for directory in ("business_analysis", "tests"):
            base = PROJECT_ROOT / directory
            if base.exists():
                for py_file in base.rglob("*.py"):
                    parts = py_file.parts
                    if "venv" in parts or "__pycache__" in parts:
                        continue
                    files.append(py_file)
        return sorted(files)

    def test_all_python_files_parse(self):
        py_files = self._collect_python_files()
        assert len(py_files) > 0, "No Python files found"
        errors = []
        for py_file in py_files:
            try:
                ast.parse(py_file.read_text(encoding="utf-8"))
            except SyntaxError as exc:
                rel = py_file.relative_to(PROJECT_ROOT)
                errors.append(str(rel) + ": " + str(exc))
        if errors:
            msg = "Python syntax errors found in " + str(len(errors)) + " files:\n"
            msg += "\n".join(errors[:20])
            pytest.fail(msg)


# ===========================================================================
# 7. Key packages importable
# ===========================================================================
class TestRequirementsInstallable:
    """Key packages from requirements.txt should be importable."""

    @pytest.mark.parametrize("package", [
        "typer",
        "rich",
        "sqlalchemy",
        "httpx",
        "bs4",
        "yaml",
        "dotenv",
        "openai",
        "playwright",
    ])
    def test_package_importable(self, package):
        importlib.import_module(package)
