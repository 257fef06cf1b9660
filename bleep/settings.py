"""User settings record.

Settings are persisted through the engine's Persistence gateway under the
``settings`` key, as JSON::

    {"voiceURI": "Samantha", "soundEnabled": true}

Usage::

    settings = parse_settings(raw)
    settings = settings.model_copy(update={"sound_enabled": False})
    persistence.save(SETTINGS_KEY, dump_settings(settings), done)
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationError

from .errors import InvalidSettingsError
from .models import FrozenModel

SETTINGS_KEY = "settings"


class Settings(FrozenModel):
    """All user-configurable preferences."""

    # ── speech ────────────────────────────────────────────────────────
    voice_uri: str | None = Field(default=None, alias="voiceURI")

    # ── audio ─────────────────────────────────────────────────────────
    sound_enabled: bool = True

    # ── voice commands ────────────────────────────────────────────────
    # None = never asked, True/False = explicit choice
    voice_recognition_enabled: bool | None = None


def default_settings(voice_uri: str | None = None) -> Settings:
    return Settings(voice_uri=voice_uri)


def parse_settings(data: Any) -> Settings:
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise InvalidSettingsError(f"invalid settings: {exc}") from exc


def dump_settings(settings: Settings) -> dict[str, Any]:
    return settings.model_dump(mode="json", by_alias=True, exclude_none=True)
