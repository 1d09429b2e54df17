from datetime import datetime
from typing import Protocol

from src.domain.entities import ConnectionSettings


class ConnectionStorePort(Protocol):
    """Port for the single persisted connection record."""

    def get(self) -> ConnectionSettings:
        """Return stored settings, defaults when nothing is stored."""
        ...

    def save(self, settings: ConnectionSettings) -> None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
