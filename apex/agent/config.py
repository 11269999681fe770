"""Agent configuration.

All settings travel through an explicit AgentConfig so the pipeline has
no hidden process-wide state. ``from_env`` is a convenience for entry
points; the library itself never reads the environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from apex.telemetry.openf1_api import OpenF1API

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class AgentConfig:
    """Settings for one ApexAgent."""

    api_base_url: str = OpenF1API.DEFAULT_BASE_URL  # Empty = offline simulation
    api_credential: str | None = None  # Anthropic API key for narratives
    strict_mode: bool = False
    openf1_credential: str | None = None
    narrative_model: str = "claude-sonnet-4-5-20250929"
    request_timeout: float = 10.0  # seconds, per HTTP call
    pacing_delay: float | None = None  # seconds before scoring; None = by data mode
    bonus_table_path: Path | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AgentConfig":
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ
        bonus_path = env.get("APEX_BONUS_TABLE", "").strip()
        pacing = env.get("APEX_PACING_DELAY", "").strip()
        return cls(
            api_base_url=env.get("OPENF1_BASE_URL", OpenF1API.DEFAULT_BASE_URL).strip(),
            api_credential=env.get("ANTHROPIC_API_KEY") or None,
            strict_mode=env.get("APEX_STRICT_MODE", "").strip().lower() in _TRUE_VALUES,
            openf1_credential=env.get("OPENF1_API_TOKEN") or None,
            narrative_model=env.get("APEX_NARRATIVE_MODEL", cls.narrative_model),
            request_timeout=float(env.get("APEX_REQUEST_TIMEOUT", cls.request_timeout)),
            pacing_delay=float(pacing) if pacing else None,
            bonus_table_path=Path(bonus_path) if bonus_path else None,
        )
