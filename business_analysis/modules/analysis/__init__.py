"""Business analysis core: orchestration, scoring, recommendations and report assembly."""

from business_analysis.modules.analysis.entities import (
    AnalysisContext,
    AnalysisFailure,
    AnalysisRequest,
    BusinessContext,
    BusinessProfile,
    InferredDetails,
)
from business_analysis.modules.analysis.orchestrator import (
    BusinessAnalyzer,
    TaskOutcome,
    settle_all,
)
from business_analysis.modules.analysis.recommendations import (
    Recommendation,
    RecommendationEngine,
)
from business_analysis.modules.analysis.report import (
    AnalysisMetadata,
    AnalysisReport,
    ReportAssembler,
)
from business_analysis.modules.analysis.scoring import ScoringEngine, ScoringOutput

__all__ = [
    "AnalysisContext",
    "AnalysisFailure",
    "AnalysisMetadata",
    "AnalysisReport",
    "AnalysisRequest",
    "BusinessAnalyzer",
    "BusinessContext",
    "BusinessProfile",
    "InferredDetails",
    "Recommendation",
    "RecommendationEngine",
    "ReportAssembler",
    "ScoringEngine",
    "ScoringOutput",
    "TaskOutcome",
    "settle_all",
]
