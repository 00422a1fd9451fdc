"""Infer a business's industry and target keywords from its name and location."""

import logging
from typing import Optional

from business_analysis.integrations.llm_client import LLMClient
from business_analysis.modules.analysis.entities import InferredDetails

logger = logging.getLogger(__name__)

MAX_INFERRED_KEYWORDS = 7

SYSTEM_PROMPT = (
    "You are a business intelligence analyst specializing in local business "
    "categorization and SEO keyword research. Provide accurate, specific "
    "classifications and relevant local search keywords. Respond ONLY with valid JSON."
)

INFERENCE_PROMPT = """Analyze this business and provide industry classification and SEO keywords:

Business Name: {name}
Location: {location}

Please provide:
1. Industry classification (choose the most specific category that applies)
2. Primary SEO keywords that customers would search for (5-7 keywords)

Respond in JSON format:
{{
  "industry": "specific industry category",
  "keywords": ["keyword1", "keyword2", "keyword3", "keyword4", "keyword5"]
}}

Industry should be specific (e.g., "restaurant", "auto repair", "hair salon",
"dental practice", "law firm", "fitness center").
Keywords should be search terms customers would use to find this business locally."""


class BusinessIntelligence:
    """LLM-backed ``DetailsInferrer``.

    Never raises; any failure yields :meth:`InferredDetails.fallback`.

    Usage::

        bi = BusinessIntelligence(LLMClient())
        details = await bi.infer("Joe's Pizza", "Austin, TX")
        details.industry, details.keywords
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self._llm = llm or LLMClient()

    async def infer(self, name: str, location: str) -> InferredDetails:
        logger.info("Inferring business details for %r in %r", name, location)
        prompt = INFERENCE_PROMPT.format(name=name, location=location)
        try:
            result = await self._llm.generate_json(prompt, system_prompt=SYSTEM_PROMPT)
        except Exception as exc:
            logger.error("Failed to infer business details: %s", exc)
            return InferredDetails.fallback(name)

        if not isinstance(result, dict):
            logger.warning("Unexpected inference payload type: %s", type(result).__name__)
            return InferredDetails.fallback(name)

        industry = result.get("industry")
        industry = industry.strip().lower() if isinstance(industry, str) and industry.strip() else ""
        raw_keywords = result.get("keywords")
        keywords = tuple(
            k.strip() for k in raw_keywords if isinstance(k, str) and k.strip()
        )[:MAX_INFERRED_KEYWORDS] if isinstance(raw_keywords, list) else ()

        details = InferredDetails(industry=industry or "general business", keywords=keywords)
        logger.info("Business details inferred: industry=%r keywords=%s",
                    details.industry, list(details.keywords))
        return details
