"""
どこで: `engine.core.interval`
何を: 閉区間 `[start, end]`（`end` は +inf 可）と、その包含/長さ/平行移動ヘルパ。
なぜ: Drawable/Animation/Scene の有効区間を同じ値型で扱い、DomainError のメッセージを統一するため。
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import ConstructionError, DomainError


@dataclass(frozen=True, slots=True)
class Interval:
    """閉区間 `[start, end]`。`end == inf` で右側非有界。"""

    start: float = 0.0
    end: float = math.inf

    def __post_init__(self) -> None:
        if math.isnan(self.start) or math.isnan(self.end):
            raise ConstructionError("interval bounds must not be NaN")
        if math.isinf(self.start):
            raise ConstructionError("interval start must be finite")
        if self.end < self.start:
            raise ConstructionError(f"interval end {self.end} precedes start {self.start}")

    @classmethod
    def of_duration(cls, start: float, duration: float) -> "Interval":
        return cls(float(start), float(start) + float(duration))

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def is_bounded(self) -> bool:
        return not math.isinf(self.end)

    def contains(self, t: float) -> bool:
        return self.start <= t <= self.end

    def check(self, t: float) -> float:
        """`t` が区間内ならそのまま返し、外なら `DomainError`。"""
        if not self.contains(t):
            raise DomainError(interval=self, t=t)
        return t

    def shifted(self, dt: float) -> "Interval":
        return Interval(self.start + dt, self.end + dt)

    def overlaps(self, other: "Interval") -> bool:
        """共通部分を持つか（端点の接触も含む）。"""
        return self.start <= other.end and other.start <= self.end

    def intersection(self, other: "Interval") -> "Interval | None":
        if not self.overlaps(other):
            return None
        return Interval(max(self.start, other.start), min(self.end, other.end))

    def hull(self, other: "Interval") -> "Interval":
        return Interval(min(self.start, other.start), max(self.end, other.end))

    def __str__(self) -> str:
        end = "inf" if math.isinf(self.end) else f"{self.end:g}"
        return f"[{self.start:g}, {end}]"


ALWAYS = Interval(0.0, math.inf)

__all__ = ["Interval", "ALWAYS"]
