"""
Local key-value preferences (last chosen network and API endpoint)
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

NETWORK_KEY = "network"
API_ENDPOINT_KEY = "api-endpoint"


def default_preferences_path() -> Path:
    """Preferences file location, overridable with ALGOCHECKOUT_PREFERENCES"""
    env_path = os.getenv("ALGOCHECKOUT_PREFERENCES")
    if env_path:
        return Path(env_path)
    return Path.home() / ".config" / "algocheckout" / "preferences.json"


class Preferences:
    """Small JSON-backed string store.

    With ``path=None`` values live in memory only. Unreadable files are
    treated as empty; the next write replaces them.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._values: dict[str, str] = self._load()

    @classmethod
    def default(cls) -> "Preferences":
        return cls(default_preferences_path())

    def _load(self) -> dict[str, str]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._values, indent=2), encoding="utf-8")
        except OSError as e:
            # Preferences only pick defaults; losing one is not fatal
            logger.warning("Could not save preferences to %s: %s", self._path, e)
