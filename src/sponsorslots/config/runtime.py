"""Pydantic-based runtime settings for the sponsorship engine.

Loads from environment variables (with optional .env file).
Invalid values fail fast at startup.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class McpMode(str, Enum):
    public = "public"
    owner = "owner"


class RuntimeSettings(BaseSettings):
    """All configuration for the runtime, validated at startup."""

    model_config = {"env_prefix": "", "env_file": ".env", "env_file_encoding": "utf-8"}

    # --- Server mode ---
    mcp_mode: McpMode = Field(
        default=McpMode.public,
        description="Which MCP surface to start: 'public' (visitors) or 'owner' (organizers)",
    )

    # --- Storage ---
    ledger_db_path: str = Field(
        default="data/ledger.db",
        description="SQLite path for campaigns, positions and sponsor entries",
    )

    # --- Position ledger ---
    claim_hold_minutes: int = Field(
        default=30,
        ge=1,
        validation_alias=AliasChoices("CLAIM_HOLD_MINUTES", "HOLD_WINDOW_MINUTES"),
        description="Minutes a pending claim may hold a position before the sweep releases it",
    )

    # --- Sizing ---
    pwyw_sizing_policy: Literal["percentile", "tiers"] = Field(
        default="percentile",
        description="Default size-tier policy for pay-what-you-want campaigns",
    )

    # --- Layout ---
    wordcloud_canvas_width: int = Field(default=600, ge=100, description="Word-cloud canvas width in px")
    wordcloud_max_attempts: int = Field(
        default=2000, ge=1, description="Spiral steps tried per sponsor before fallback placement"
    )
    plan_cache_size: int = Field(default=256, ge=0, description="Version-keyed placement plan cache entries")

    # --- Auth (optional: require key for production) ---
    require_owner_key: bool = Field(default=False, description="If True, owner surface requires MCP_OWNER_KEY env")
    require_public_key: bool = Field(default=False, description="If True, public surface requires MCP_PUBLIC_KEY env")

    # --- Logging ---
    log_level: str = Field(default="INFO", description="Root log level for CLI and MCP entrypoints")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> RuntimeSettings:
    """Return the singleton RuntimeSettings (cached after first call)."""
    return RuntimeSettings()
