"""User interface preferences persisted next to the database.

Preferences are loaded once at startup and written back on every change; the
presentation layer receives the resulting value instead of reading shared state.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from .errors import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Preferences:
    dark_mode: bool = False
    sidebar_collapsed: bool = False


class PreferencesStore:
    """Load and persist :class:`Preferences` as a small JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._current: Preferences | None = None

    @property
    def current(self) -> Preferences:
        if self._current is None:
            self._current = self.load()
        return self._current

    def load(self) -> Preferences:
        if not self.path.exists():
            return Preferences()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            log.warning("Ignoring unreadable preferences file %s", self.path, exc_info=True)
            return Preferences()
        if not isinstance(payload, dict):
            log.warning("Ignoring malformed preferences file %s", self.path)
            return Preferences()
        data = cast(dict[str, Any], payload)
        known = {field.name for field in fields(Preferences)}
        values = {key: bool(value) for key, value in data.items() if key in known}
        return Preferences(**values)

    def update(self, **changes: bool) -> Preferences:
        """Apply ``changes`` to the current preferences and write them back."""

        known = {field.name for field in fields(Preferences)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigurationError(f"Unknown preferences: {', '.join(unknown)}")
        updated = replace(self.current, **changes)
        self.save(updated)
        return updated

    def save(self, preferences: Preferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(preferences), indent=2), encoding="utf-8")
        self._current = preferences
