# sim/clock.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta


def ms(x: float) -> float:
    return x / 1000.0


@dataclass(frozen=True)
class SimClock:
    epoch: datetime  # wall-time of t=0

    @classmethod
    def utc_epoch(cls, y: int, m: int, d: int, hh=0, mm=0, ss=0) -> SimClock:
        return cls(datetime(y, m, d, hh, mm, ss, tzinfo=UTC))

    # sim seconds -> wall
    def to_wall(self, t: float) -> datetime:
        return self.epoch + timedelta(seconds=t)

    def iso_at(self, t: float) -> str:
        """ISO-8601 UTC stamp with millisecond precision and a trailing Z."""
        wall = self.to_wall(t).astimezone(UTC)
        return wall.strftime("%Y-%m-%dT%H:%M:%S.") + f"{wall.microsecond // 1000:03d}Z"
