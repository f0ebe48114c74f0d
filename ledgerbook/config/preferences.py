"""
User Settings (language preference)

The display language is an explicit value handed to the presentation
layer at startup. It changes only through UserSettingsStore.set_language,
which persists the new value as a side effect.

The file format matches the key the mobile app kept on the device:
    {"isTeluguEnabled": true}

The calculator never reads these settings.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict

from ledgerbook.config.settings import get_settings


logger = structlog.get_logger(__name__)

PREFERENCE_KEY = "isTeluguEnabled"


class Language(str, Enum):
    """Supported display languages."""
    ENGLISH = "en"
    TELUGU = "te"


class UserSettings(BaseModel):
    """Immutable user-facing settings."""
    model_config = ConfigDict(frozen=True)

    language: Language = Language.ENGLISH

    @property
    def is_telugu_enabled(self) -> bool:
        return self.language == Language.TELUGU


class UserSettingsStore:
    """
    Loads and persists UserSettings to a local JSON file.

    A missing or unreadable file yields the defaults (English).
    Write failures are logged, the in-memory value still changes.
    """

    def __init__(self, path: Optional[str | Path] = None):
        self._path = Path(path or get_settings().app.preferences_path)
        self._current: Optional[UserSettings] = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> UserSettings:
        """Read settings from disk (cached after the first read)."""
        if self._current is not None:
            return self._current

        self._current = UserSettings()
        if not self._path.exists():
            return self._current

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            telugu = bool(raw.get(PREFERENCE_KEY, False))
            self._current = UserSettings(
                language=Language.TELUGU if telugu else Language.ENGLISH
            )
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(
                "preferences_read_failed",
                path=str(self._path),
                error=str(e),
            )
        return self._current

    def set_language(self, language: Language) -> UserSettings:
        """The single setter. Persists and returns the new settings."""
        self._current = UserSettings(language=language)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps({PREFERENCE_KEY: language == Language.TELUGU}),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(
                "preferences_write_failed",
                path=str(self._path),
                error=str(e),
            )
        return self._current

    def toggle_language(self) -> UserSettings:
        """Flip between English and Telugu."""
        current = self.load()
        new_language = (
            Language.ENGLISH if current.is_telugu_enabled else Language.TELUGU
        )
        return self.set_language(new_language)
