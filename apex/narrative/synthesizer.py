"""Narrative summarizer using the Claude API.

Turns a numeric prediction into a short tactical explanation. The
narrative is an enhancement only: every failure path returns a labelled
placeholder string so the prediction itself is never invalidated.
"""

import logging

import anthropic

from apex.narrative.prompts import NARRATIVE_SYSTEM_PROMPT, build_narrative_prompt
from apex.prediction.models import PredictionResult
from apex.roster.models import Driver, Track

logger = logging.getLogger(__name__)

MISSING_KEY_NARRATIVE = (
    "Agent Insight: API key missing. Unable to generate narrative analysis, "
    "but the statistical prediction remains valid."
)
OFFLINE_NARRATIVE = "Agent Insight: Tactical analysis system offline. ({reason})"


class NarrativeSummarizer:
    """Generate prediction narratives with Claude."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "claude-sonnet-4-5-20250929",
        timeout: float = 30.0,
        max_tokens: int = 300,
    ):
        # Trailing whitespace from copy-pasted keys causes auth failures
        self.api_key = (api_key or "").strip()
        self.model = model
        self.max_tokens = max_tokens
        self.client = (
            anthropic.AsyncAnthropic(api_key=self.api_key, timeout=timeout)
            if self.api_key
            else None
        )

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def aclose(self) -> None:
        """Close the underlying API client."""
        if self.client is not None:
            await self.client.close()

    async def summarize(
        self,
        driver: Driver,
        track: Track,
        result: PredictionResult,
    ) -> str:
        """Return a narrative for the prediction, or a placeholder on failure."""
        if self.client is None:
            return MISSING_KEY_NARRATIVE

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=NARRATIVE_SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": build_narrative_prompt(driver, track, result),
                    }
                ],
            )
            text = self._extract_text(response)
        except anthropic.APIError as exc:
            logger.warning("Narrative generation failed: %s", exc)
            return OFFLINE_NARRATIVE.format(reason=_clean_error_message(exc))
        except (AttributeError, TypeError) as exc:
            logger.warning("Malformed narrative response: %s", exc)
            return OFFLINE_NARRATIVE.format(reason="Malformed response")
        except Exception as exc:
            logger.warning("Narrative generation failed unexpectedly: %r", exc)
            return OFFLINE_NARRATIVE.format(reason=str(exc) or type(exc).__name__)

        if not text.strip():
            logger.warning("Narrative response contained no text")
            return OFFLINE_NARRATIVE.format(reason="Empty response")
        return text.strip()

    def _extract_text(self, response: anthropic.types.Message) -> str:
        """Join the text blocks of a Claude response."""
        text_parts: list[str] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
        return "\n\n".join(text_parts)


def _clean_error_message(exc: anthropic.APIError) -> str:
    """Pull the human-readable message out of an API error body."""
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__
