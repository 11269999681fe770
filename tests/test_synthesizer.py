"""Tests for the narrative summarizer.

Uses mocks for the Claude API, no real API calls.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from apex.narrative.prompts import build_narrative_prompt
from apex.narrative.synthesizer import (
    MISSING_KEY_NARRATIVE,
    NarrativeSummarizer,
)
from apex.prediction.models import DriverStats, PredictionResult
from apex.roster.models import Driver, Track


def _make_text_block(text: str):
    """Create a mock text block matching the Anthropic SDK structure."""
    block = MagicMock()
    block.type = "text"
    block.text = text
    return block


def _make_response(*blocks):
    response = MagicMock()
    response.content = list(blocks)
    return response


@pytest.fixture
def driver() -> Driver:
    return Driver("leclerc", "Charles Leclerc", "Ferrari")


@pytest.fixture
def track() -> Track:
    return Track("monza", "Monza", "Italy")


@pytest.fixture
def result() -> PredictionResult:
    stats = DriverStats("leclerc", "monza", historical_score=9.5, recent_form_score=8.2)
    return PredictionResult(
        probability=70.3,
        historical_contribution=57.0,
        form_contribution=32.8,
        raw_stats=stats,
    )


@pytest.fixture
def mock_client():
    """Patch AsyncAnthropic and yield the client instance it returns."""
    with patch("apex.narrative.synthesizer.anthropic.AsyncAnthropic") as MockAnthropic:
        client = MagicMock()
        client.messages.create = AsyncMock()
        MockAnthropic.return_value = client
        yield client


class TestBuildPrompt:
    def test_embeds_driver_track_and_scores(self, driver, track, result):
        prompt = build_narrative_prompt(driver, track, result)

        assert "Charles Leclerc (Ferrari)" in prompt
        assert "Monza, Italy" in prompt
        assert "70.3%" in prompt
        assert "9.5/10" in prompt
        assert "8.2/10" in prompt


class TestMissingCredential:
    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_returns_placeholder_without_calling_api(self, key, driver, track, result):
        with patch("apex.narrative.synthesizer.anthropic.AsyncAnthropic") as MockAnthropic:
            synth = NarrativeSummarizer(api_key=key)
            text = asyncio.run(synth.summarize(driver, track, result))

        assert text == MISSING_KEY_NARRATIVE
        assert not synth.configured
        MockAnthropic.assert_not_called()

    def test_key_is_stripped(self, mock_client):
        synth = NarrativeSummarizer(api_key="  sk-test \n")
        assert synth.api_key == "sk-test"
        assert synth.configured


class TestSummarize:
    def test_calls_claude_with_prompt(self, mock_client, driver, track, result):
        mock_client.messages.create.return_value = _make_response(
            _make_text_block("Leclerc's Monza pedigree carries this one.")
        )

        synth = NarrativeSummarizer(api_key="test-key", model="claude-test")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert text == "Leclerc's Monza pedigree carries this one."
        mock_client.messages.create.assert_awaited_once()
        call_kwargs = mock_client.messages.create.call_args.kwargs
        assert call_kwargs["model"] == "claude-test"
        assert "Charles Leclerc" in call_kwargs["messages"][0]["content"]

    def test_joins_text_blocks_only(self, mock_client, driver, track, result):
        other = MagicMock()
        other.type = "thinking"
        mock_client.messages.create.return_value = _make_response(
            _make_text_block("First."), other, _make_text_block("Second.")
        )

        synth = NarrativeSummarizer(api_key="test-key")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert text == "First.\n\nSecond."

    def test_empty_response_degrades(self, mock_client, driver, track, result):
        mock_client.messages.create.return_value = _make_response()

        synth = NarrativeSummarizer(api_key="test-key")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert text.startswith("Agent Insight: Tactical analysis system offline.")
        assert "Empty response" in text

    def test_malformed_response_degrades(self, mock_client, driver, track, result):
        mock_client.messages.create.return_value = _make_response(None)

        synth = NarrativeSummarizer(api_key="test-key")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert "Malformed response" in text


class TestFailures:
    def test_connection_error_degrades(self, mock_client, driver, track, result):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        mock_client.messages.create.side_effect = anthropic.APIConnectionError(
            request=request
        )

        synth = NarrativeSummarizer(api_key="test-key")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert text.startswith("Agent Insight: Tactical analysis system offline.")

    def test_status_error_uses_body_message(self, mock_client, driver, track, result):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        response = httpx.Response(401, request=request)
        mock_client.messages.create.side_effect = anthropic.AuthenticationError(
            "Error code: 401",
            response=response,
            body={"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}},
        )

        synth = NarrativeSummarizer(api_key="bad-key")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert text == "Agent Insight: Tactical analysis system offline. (invalid x-api-key)"

    def test_unexpected_error_degrades(self, mock_client, driver, track, result):
        mock_client.messages.create.side_effect = RuntimeError("event loop is closed")

        synth = NarrativeSummarizer(api_key="test-key")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert text == "Agent Insight: Tactical analysis system offline. (event loop is closed)"

    def test_unexpected_error_without_message_uses_type(
        self, mock_client, driver, track, result
    ):
        mock_client.messages.create.side_effect = OSError()

        synth = NarrativeSummarizer(api_key="test-key")
        text = asyncio.run(synth.summarize(driver, track, result))

        assert text == "Agent Insight: Tactical analysis system offline. (OSError)"

    def test_aclose_closes_client(self, mock_client):
        mock_client.close = AsyncMock()
        synth = NarrativeSummarizer(api_key="test-key")

        asyncio.run(synth.aclose())

        mock_client.close.assert_awaited_once()
