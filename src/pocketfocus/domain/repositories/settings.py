"""Settings repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol


class SettingsRepository(Protocol):
    """Key-value store for small persisted preferences."""

    def get_value(self, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or None."""
        ...

    def set_value(self, key: str, value: str, description: str | None = None) -> None:
        """Insert or replace the value for ``key``."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...
