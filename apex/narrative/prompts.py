"""Prompt templates for race narrative generation."""

from apex.prediction.models import PredictionResult
from apex.roster.models import Driver, Track

NARRATIVE_SYSTEM_PROMPT = """\
You are "APEX", an advanced Formula 1 strategy agent. You explain race \
win predictions to fans in the voice of a pit-wall strategist: concise, \
professional, and technical without being opaque."""

NARRATIVE_USER_TEMPLATE = """\
Analyze the following prediction data:

Driver: {driver_name} ({team})
Track: {track_name}, {location}
Predicted Win Probability: {probability}%

Key Metrics:
- Historical Track Performance Rating: {historical_score}/10
- Recent Form Rating: {form_score}/10

Task: Write a concise, professional 2-sentence tactical analysis explaining \
this probability. Focus on the balance between their history at this track \
and their current season form. Use technical F1 terminology (e.g., \
downforce, tire degradation, sector times, chassis balance)."""


def build_narrative_prompt(
    driver: Driver,
    track: Track,
    result: PredictionResult,
) -> str:
    """Build the user message for a narrative request."""
    return NARRATIVE_USER_TEMPLATE.format(
        driver_name=driver.name,
        team=driver.team,
        track_name=track.name,
        location=track.location,
        probability=result.probability,
        historical_score=result.raw_stats.historical_score,
        form_score=result.raw_stats.recent_form_score,
    )
