"""Tests for the Natural Language sentiment client."""

import json

import httpx
import pytest
import respx

from src.chat.errors import SentimentError
from src.sentiment.language_client import LanguageClient

API_URL = "https://language.test/v2"
ANALYZE_URL = f"{API_URL}/documents:analyzeSentiment"


class TestAnalyzeSentiment:
    """Tests for LanguageClient.analyze_sentiment()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_body_and_result(self):
        route = respx.post(ANALYZE_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "documentSentiment": {"score": -0.7, "magnitude": 0.9},
                    "languageCode": "ja",
                },
            )
        )

        async with LanguageClient(api_key="lang-key", api_url=API_URL) as client:
            score, magnitude = await client.analyze_sentiment("最悪")

        assert (score, magnitude) == (-0.7, 0.9)
        request = route.calls.last.request
        assert request.url.params["key"] == "lang-key"
        assert json.loads(request.content) == {
            "document": {"type": "PLAIN_TEXT", "content": "最悪"},
            "encodingType": "UTF8",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_fields_default_to_zero(self):
        respx.post(ANALYZE_URL).mock(
            return_value=httpx.Response(200, json={"documentSentiment": {}})
        )

        async with LanguageClient(api_key="k", api_url=API_URL) as client:
            assert await client.analyze_sentiment("ok") == (0.0, 0.0)

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_failure(self):
        respx.post(ANALYZE_URL).mock(
            return_value=httpx.Response(400, json={"error": {"status": "INVALID_ARGUMENT"}})
        )

        async with LanguageClient(api_key="k", api_url=API_URL) as client:
            with pytest.raises(SentimentError) as exc_info:
                await client.analyze_sentiment("text")

        assert exc_info.value.stage == "classify"

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_document_sentiment(self):
        respx.post(ANALYZE_URL).mock(return_value=httpx.Response(200, json={}))

        async with LanguageClient(api_key="k", api_url=API_URL) as client:
            with pytest.raises(SentimentError, match="Malformed"):
                await client.analyze_sentiment("text")

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            LanguageClient(api_key="")
