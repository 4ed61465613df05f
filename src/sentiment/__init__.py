"""
Sentiment scoring via the Cloud Natural Language API.

Usage:
    from src.sentiment import LanguageClient

    async with LanguageClient(api_key="...") as client:
        score, magnitude = await client.analyze_sentiment("最高の配信でした")
"""

from src.sentiment.language_client import LanguageClient

__all__ = ["LanguageClient"]
