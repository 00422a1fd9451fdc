"""Industry and keyword inference plus profile enrichment for businesses."""

from business_analysis.modules.business_intel.inference import BusinessIntelligence
from business_analysis.modules.business_intel.serp_profile import SerpProfileEnricher

__all__ = ["BusinessIntelligence", "SerpProfileEnricher"]
