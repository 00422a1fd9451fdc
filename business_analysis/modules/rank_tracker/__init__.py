"""Local search ranking analysis over SerpAPI results."""

from business_analysis.modules.rank_tracker.serp_analyzer import SearchRankingAnalyzer

__all__ = ["SearchRankingAnalyzer"]
