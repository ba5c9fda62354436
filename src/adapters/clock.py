from datetime import UTC, datetime

from src.domain.state import normalize_instant


class SystemClock:
    """Server clock, normalized to the storage format (UTC, whole seconds)."""

    def now(self) -> datetime:
        return normalize_instant(datetime.now(UTC))


class FrozenClock:
    """
    Clock that returns a fixed time.

    Useful for deterministic testing.
    """

    def __init__(self, frozen: datetime) -> None:
        self._frozen = normalize_instant(frozen)

    def now(self) -> datetime:
        return self._frozen

    def set(self, frozen: datetime) -> None:
        self._frozen = normalize_instant(frozen)
