"""User preferences shared by every view: dark mode and the remembered e-mail.

The store reads its file once when constructed and writes through on every
change, so views get one consistent copy injected instead of each reading
storage on its own.
"""

import json
from pathlib import Path

from pydantic import BaseModel, ValidationError

from src.nurse_visits.logging import get_logger

log = get_logger(__name__)


class Preferences(BaseModel):
    dark_mode: bool = False
    user_email: str | None = None


class PreferencesStore:
    """JSON-file backed Preferences with write-through updates."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._prefs = self._read()

    @property
    def preferences(self) -> Preferences:
        return self._prefs.model_copy()

    @property
    def dark_mode(self) -> bool:
        return self._prefs.dark_mode

    @property
    def user_email(self) -> str | None:
        return self._prefs.user_email

    def set_dark_mode(self, enabled: bool) -> None:
        self._update(dark_mode=enabled)

    def toggle_dark_mode(self) -> bool:
        self._update(dark_mode=not self._prefs.dark_mode)
        return self._prefs.dark_mode

    def remember_email(self, email: str) -> None:
        self._update(user_email=email.strip() or None)

    def forget_email(self) -> None:
        self._update(user_email=None)

    def _read(self) -> Preferences:
        if not self.path.exists():
            log.debug("preferences_missing", path=str(self.path))
            return Preferences()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            prefs = Preferences.model_validate(data)
        except (ValueError, ValidationError) as e:
            # A corrupt file only loses preferences; start from defaults
            log.warning("preferences_unreadable", path=str(self.path), error=str(e))
            return Preferences()
        log.debug("preferences_loaded", path=str(self.path), dark_mode=prefs.dark_mode)
        return prefs

    def _update(self, **changes) -> None:
        self._prefs = self._prefs.model_copy(update=changes)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(self._prefs.model_dump(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        log.info("preferences_saved", path=str(self.path), fields=sorted(changes))
