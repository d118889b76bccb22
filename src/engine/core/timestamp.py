"""
どこで: `engine.core.timestamp`
何を: 分/秒/フレームの時刻表記 `TimeStamp` と、秒⇔フレームの変換・密なサンプル列の生成。
なぜ: 連続時間（秒）で評価するエンジンに、フレーム単位での指定/列挙を持ち込むため。

例:
    >>> TimeStamp(0, 1, 15).to_seconds(30)
    1.5
    >>> len(frame_times(0.0, 1.0, fps=30))
    31
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import total_ordering

from common.settings import get as _get_settings


@total_ordering
@dataclass(frozen=True, slots=True)
class TimeStamp:
    """分/秒/フレームの三つ組。比較は辞書順（minute→second→frame）。"""

    minute: int = 0
    second: int = 0
    frame: int = 0

    def __post_init__(self) -> None:
        if self.minute < 0 or self.second < 0 or self.frame < 0:
            raise ValueError("TimeStamp fields must be non-negative")
        if self.second > 59:
            raise ValueError("TimeStamp.second must be in 0..59")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TimeStamp):
            return NotImplemented
        return (self.minute, self.second, self.frame) < (other.minute, other.second, other.frame)

    def as_num_frames(self, fps: int) -> int:
        return (self.minute * 60 + self.second) * int(fps) + self.frame

    def to_seconds(self, fps: int | None = None) -> float:
        f = int(fps if fps is not None else _get_settings().DEFAULT_FPS)
        return self.as_num_frames(f) / float(f)

    def increment(self, fps: int) -> "TimeStamp":
        """1 フレーム進めた新しい TimeStamp を返す。"""
        minute, second, frame = self.minute, self.second, self.frame + 1
        if frame >= fps:
            frame = 0
            second += 1
        if second > 59:
            second = 0
            minute += 1
        return TimeStamp(minute, second, frame)

    @classmethod
    def from_frames(cls, n: int, fps: int) -> "TimeStamp":
        if n < 0:
            raise ValueError("frame count must be non-negative")
        sec_total, frame = divmod(int(n), int(fps))
        minute, second = divmod(sec_total, 60)
        return cls(minute, second, frame)

    @classmethod
    def from_seconds(cls, t: float, fps: int) -> "TimeStamp":
        """最も近いフレームへ丸める。"""
        return cls.from_frames(int(round(float(t) * fps)), fps)


def frame_times(t0: float, t1: float, fps: int | None = None) -> list[float]:
    """`[t0, t1]` を fps で刻んだ時刻列（両端含む、t1 は端数なら切り捨て）。"""
    f = int(fps if fps is not None else _get_settings().DEFAULT_FPS)
    if f < 1:
        raise ValueError("fps must be >= 1")
    if t1 < t0:
        raise ValueError("t1 must not precede t0")
    if math.isinf(t1):
        raise ValueError("cannot enumerate frames of an unbounded range")
    n = int(math.floor((t1 - t0) * f + 1e-9))
    # 浮動小数誤差で t1 を越えないよう上端で丸める
    return [min(t0 + i / f, t1) for i in range(n + 1)]


__all__ = ["TimeStamp", "frame_times"]
