"""Google review sentiment, topics and insights."""

from business_analysis.modules.reviews.sentiment import ReviewSentimentAnalyzer

__all__ = ["ReviewSentimentAnalyzer"]
