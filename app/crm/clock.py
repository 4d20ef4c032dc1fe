from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta


class Clock:
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.utcnow()


@dataclass
class FixedClock(Clock):
    """Deterministic clock for tests and scripts."""

    current: datetime = field(default_factory=lambda: datetime(2026, 1, 1, 12, 0, 0))

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current
