"""Display preference store.

Persists the theme flag as a key/value pair in a small JSON file.
"""

import json
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

THEMES = ("light", "dark")


class PreferenceStore:
    """Key/value preference file holding the user's theme."""

    def __init__(self, path: str | Path, default_theme: str = "light"):
        """Initialize the store.

        Args:
            path: JSON file location (created on first write)
            default_theme: Theme used when nothing has been saved yet
        """
        if default_theme not in THEMES:
            raise ValueError(f"Theme must be one of {THEMES}, got {default_theme!r}")
        self.path = Path(path)
        self.default_theme = default_theme

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("preferences.load_failed", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def get_theme(self) -> str:
        """Return the saved theme, or the default if none is saved."""
        theme = self._load().get("theme")
        return theme if theme in THEMES else self.default_theme

    def set_theme(self, theme: str) -> str:
        """Persist a theme.

        Raises:
            ValueError: If theme is not 'light' or 'dark'
        """
        if theme not in THEMES:
            raise ValueError(f"Theme must be one of {THEMES}, got {theme!r}")

        data = self._load()
        data["theme"] = theme
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")
        logger.info("preferences.theme_saved", theme=theme)
        return theme

    def toggle_theme(self) -> str:
        """Flip between light and dark and persist the result."""
        return self.set_theme("light" if self.get_theme() == "dark" else "dark")
