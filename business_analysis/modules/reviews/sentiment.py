"""Review sentiment analysis: per-review sentiment, topics and insights via the LLM."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import Counter
from typing import Any, Optional, Sequence

from business_analysis.integrations.llm_client import LLMClient
from business_analysis.modules.analysis.entities import (
    AnalysisFailure,
    InsightType,
    Review,
    ReviewAnalysis,
    ReviewInsight,
    ReviewResult,
    ReviewStats,
    ReviewTopic,
    SentimentSummary,
)
from business_analysis.utils.helpers import round_half_up, round_to

logger = logging.getLogger(__name__)

MAX_REVIEWS_ANALYZED = 50
BATCH_SIZE = 10
BATCH_PAUSE_SECONDS = 1.0

_SENTIMENT_VALUE = {"positive": 1, "neutral": 0, "negative": -1}

SENTIMENT_SYSTEM_PROMPT = (
    "You are an expert sentiment analyst. Analyze customer reviews and provide "
    "accurate sentiment analysis in JSON format."
)
TOPIC_SYSTEM_PROMPT = (
    "You are an expert in analyzing customer feedback. Extract meaningful topics "
    "and themes from reviews. Respond ONLY with valid JSON."
)
INSIGHT_SYSTEM_PROMPT = (
    "You are a business consultant analyzing customer reviews. Provide actionable "
    "insights and recommendations. Respond ONLY with valid JSON."
)


# ------------------------------------------------------------------
# Statistics (pure)
# ------------------------------------------------------------------

def sentiment_from_rating(rating: int) -> str:
    if rating >= 4:
        return "positive"
    if rating >= 3:
        return "neutral"
    return "negative"


def summarize_sentiment(sentiments: Sequence[str]) -> SentimentSummary:
    """Counts, rounded percentages and the mean of +1/0/-1 scores."""
    total = len(sentiments)
    if total == 0:
        return SentimentSummary()
    counts = Counter(sentiments)
    positive, neutral, negative = counts["positive"], counts["neutral"], counts["negative"]
    score = sum(_SENTIMENT_VALUE.get(s, 0) for s in sentiments) / total
    return SentimentSummary(
        positive=positive,
        neutral=neutral,
        negative=negative,
        positive_percentage=round_half_up(positive / total * 100),
        neutral_percentage=round_half_up(neutral / total * 100),
        negative_percentage=round_half_up(negative / total * 100),
        # round_half_up only handles non-negative values
        average_sentiment=round(score, 2),
    )


def review_frequency(total_reviews: int) -> str:
    if total_reviews == 0:
        return "unknown"
    if total_reviews > 50:
        return "high"
    if total_reviews > 20:
        return "medium"
    return "low"


def compute_review_stats(reviews: Sequence[Review]) -> ReviewStats:
    """Rating statistics over every review, not just the analyzed sample."""
    total = len(reviews)
    if total == 0:
        return ReviewStats()
    average = sum(r.rating for r in reviews) / total
    distribution = dict(sorted(Counter(r.rating for r in reviews).items()))
    return ReviewStats(
        total_reviews=total,
        average_rating=round_to(average, 1),
        rating_distribution=distribution,
        review_frequency=review_frequency(total),
        confidence_score=round_half_up(min(100.0, total / 50 * 100)),
    )


def fallback_insight(analyzed: int) -> ReviewInsight:
    return ReviewInsight(
        type=InsightType.INFO,
        title="Analysis Available",
        description=(
            "Review data collected successfully but detailed insights could not be generated"
        ),
        impact="low",
        supporting_data=f"{analyzed} reviews analyzed",
    )


def _parse_insight(raw: dict[str, Any]) -> Optional[ReviewInsight]:
    try:
        kind = InsightType(str(raw.get("type", "")).lower())
    except ValueError:
        return None
    impact = str(raw.get("impact", "low")).lower()
    return ReviewInsight(
        type=kind,
        title=str(raw.get("title", "")).strip(),
        description=str(raw.get("description", "")).strip(),
        impact=impact if impact in ("high", "medium", "low") else "low",
        supporting_data=str(raw.get("supporting_data", "")),
    )


def _parse_topic(raw: dict[str, Any]) -> Optional[ReviewTopic]:
    name = str(raw.get("topic", "")).strip()
    if not name:
        return None
    try:
        frequency = int(raw.get("frequency") or 0)
    except (TypeError, ValueError):
        frequency = 0
    return ReviewTopic(
        topic=name,
        frequency=frequency,
        sentiment=str(raw.get("sentiment", "neutral")).lower(),
        keywords=tuple(str(k) for k in raw.get("keywords") or () if isinstance(k, str)),
    )


# ------------------------------------------------------------------
# Analyzer
# ------------------------------------------------------------------

class ReviewSentimentAnalyzer:
    """Analyze Google reviews for sentiment, recurring topics and insights.

    Implements the ``ReviewAnalyzer`` protocol.  LLM failures degrade
    gracefully: sentiment falls back to star ratings, topics to an empty
    list and insights to a single ``info`` entry.

    Usage::

        analyzer = ReviewSentimentAnalyzer(LLMClient())
        result = await analyzer.analyze(profile.reviews, profile.place_id)
    """

    def __init__(self, llm: Optional[LLMClient] = None,
                 max_reviews: int = MAX_REVIEWS_ANALYZED,
                 batch_size: int = BATCH_SIZE,
                 batch_pause: float = BATCH_PAUSE_SECONDS):
        self._llm = llm or LLMClient()
        self._max_reviews = max_reviews
        self._batch_size = batch_size
        self._batch_pause = batch_pause

    async def analyze(self, reviews: Sequence[Review], place_id: str) -> ReviewResult:
        start_ts = time.monotonic()
        reviews = list(reviews)
        logger.info("Starting review sentiment analysis: %d reviews (%s)", len(reviews), place_id)

        if not reviews:
            return ReviewAnalysis(
                place_id=place_id,
                analysis_duration_ms=int((time.monotonic() - start_ts) * 1000),
            )

        try:
            sample = reviews[:self._max_reviews]
            sentiments = await self.classify_sentiment(sample)
            topics = await self.extract_topics(sample)
            summary = summarize_sentiment(sentiments)
            stats = compute_review_stats(reviews)
            insights = await self.generate_insights(sample, summary, stats, topics)
        except Exception as exc:
            logger.error("Review sentiment analysis failed for %s: %s", place_id, exc, exc_info=True)
            return AnalysisFailure(source="reviews", error=str(exc))

        logger.info(
            "Review analysis complete: %d analyzed, %d%% positive, %d topics",
            len(sample), summary.positive_percentage, len(topics),
        )
        return ReviewAnalysis(
            place_id=place_id,
            total_reviews=len(reviews),
            analyzed_reviews=len(sample),
            sentiment_summary=summary,
            review_stats=stats,
            topics=tuple(topics),
            insights=tuple(insights),
            analysis_duration_ms=int((time.monotonic() - start_ts) * 1000),
        )

    # ------------------------------------------------------------------
    # LLM-backed steps
    # ------------------------------------------------------------------

    async def classify_sentiment(self, reviews: Sequence[Review]) -> list[str]:
        """One sentiment label per review, batched; star ratings on failure."""
        labels: list[str] = []
        try:
            for start in range(0, len(reviews), self._batch_size):
                batch = reviews[start:start + self._batch_size]
                labels.extend(await self._classify_batch(batch, start))
                if start + self._batch_size < len(reviews):
                    await asyncio.sleep(self._batch_pause)
        except (ValueError, RuntimeError) as exc:
            logger.warning("Sentiment batch failed, using star ratings: %s", exc)
            return [sentiment_from_rating(r.rating) for r in reviews]
        return labels

    async def _classify_batch(self, batch: Sequence[Review], offset: int) -> list[str]:
        listing = "\n\n".join(
            f'Review {offset + i}: "{r.text}" (Rating: {r.rating}/5)'
            for i, r in enumerate(batch)
        )
        prompt = (
            "Analyze the sentiment of these Google business reviews. For each review, "
            "provide the sentiment (positive/negative/neutral), a confidence (0-1), the "
            "key emotion and the main topic mentioned.\n\n"
            f"Reviews to analyze:\n{listing}\n\n"
            'Respond with JSON: {"reviews": [{"id": 0, "sentiment": "positive", '
            '"confidence": 0.85, "emotion": "satisfied", "topic": "food quality"}]}'
        )
        data = await self._llm.generate_json(prompt, system_prompt=SENTIMENT_SYSTEM_PROMPT)
        entries = data.get("reviews") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ValueError("Sentiment response missing 'reviews' list")

        labels = []
        for review, entry in zip(batch, entries):
            label = str((entry or {}).get("sentiment", "")).lower()
            labels.append(label if label in _SENTIMENT_VALUE else sentiment_from_rating(review.rating))
        # Reviews the model skipped fall back to their rating.
        labels.extend(sentiment_from_rating(r.rating) for r in batch[len(labels):])
        return labels

    async def extract_topics(self, reviews: Sequence[Review]) -> list[ReviewTopic]:
        texts = [r.text for r in reviews if r.text]
        if not texts:
            return []
        prompt = (
            "Analyze these customer reviews and identify the main topics discussed, "
            "their frequency and sentiment.\n\n"
            "Reviews:\n" + "\n\n".join(texts) + "\n\n"
            'Respond with JSON: {"topics": [{"topic": "food quality", "frequency": 15, '
            '"sentiment": "positive", "keywords": ["delicious", "fresh"]}]}'
        )
        try:
            data = await self._llm.generate_json(prompt, system_prompt=TOPIC_SYSTEM_PROMPT)
        except (ValueError, RuntimeError) as exc:
            logger.warning("Topic extraction failed: %s", exc)
            return []
        raw_topics = data.get("topics") if isinstance(data, dict) else None
        if not isinstance(raw_topics, list):
            return []
        return [t for t in (_parse_topic(x) for x in raw_topics if isinstance(x, dict)) if t]

    async def generate_insights(self, reviews: Sequence[Review], summary: SentimentSummary,
                                stats: ReviewStats,
                                topics: Sequence[ReviewTopic]) -> list[ReviewInsight]:
        analysis_data = {
            "total_reviews": len(reviews),
            "average_rating": stats.average_rating,
            "sentiment_distribution": {
                "positive": summary.positive,
                "neutral": summary.neutral,
                "negative": summary.negative,
            },
            "top_topics": [t.to_dict() for t in topics[:5]],
        }
        prompt = (
            "Based on this customer review analysis, provide actionable business insights.\n\n"
            f"Data:\n{json.dumps(analysis_data, indent=2)}\n\n"
            'Respond with JSON: {"insights": [{"type": "strength|concern|opportunity", '
            '"title": "...", "description": "...", "impact": "high|medium|low", '
            '"supporting_data": "..."}]}'
        )
        try:
            data = await self._llm.generate_json(
                prompt, system_prompt=INSIGHT_SYSTEM_PROMPT, temperature=0.4,
            )
        except (ValueError, RuntimeError) as exc:
            logger.warning("Insight generation failed: %s", exc)
            return [fallback_insight(len(reviews))]

        raw = data.get("insights") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return [fallback_insight(len(reviews))]
        return [i for i in (_parse_insight(x) for x in raw if isinstance(x, dict)) if i]
