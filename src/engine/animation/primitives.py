"""
どこで: `engine.animation.primitives`
何を: 基本 Animation（定数・線形・キーフレーム・パラメトリック・ベジェ）。
なぜ: 合成子（combinators）の葉となる純関数を、構築時検証つきで用意するため。

補間/イージングの既定:
- `easing=None` は線形（恒等カーブ）。イージングは `u ∈ [0,1] -> [0,1]` の呼び出し可能。
- 長さ 0 の区間の進捗は 1.0（終端値）とする。
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Sequence

from engine.core.errors import ConstructionError
from engine.core.interval import Interval

from .base import Animation
from .interpolate import bezier_point, is_interpolatable, lerp, progress

Curve = Callable[[float], float]


def _apply_curve(curve: Curve | None, u: float) -> float:
    if curve is None:
        return u
    v = float(curve(u))
    return 0.0 if v < 0.0 else 1.0 if v > 1.0 else v


class Constant(Animation):
    """定数。`duration=inf` で右側非有界。"""

    __slots__ = ("_value",)

    def __init__(self, value: Any, duration: float = math.inf, *, start: float = 0.0) -> None:
        if duration < 0:
            raise ConstructionError("constant duration must be non-negative")
        super().__init__(Interval.of_duration(start, duration))
        self._value = value

    @property
    def value(self) -> Any:
        return self._value

    def _at(self, t: float) -> Any:
        return self._value


class Linear(Animation):
    """`start_value` から `end_value` への線形補間（任意イージング）。"""

    __slots__ = ("_a", "_b", "_easing")

    def __init__(
        self,
        start_value: Any,
        end_value: Any,
        duration: float,
        easing: Curve | None = None,
        *,
        start: float = 0.0,
    ) -> None:
        if not math.isfinite(duration) or duration < 0:
            raise ConstructionError(f"linear duration must be finite and non-negative, got {duration}")
        if not (is_interpolatable(start_value) and is_interpolatable(end_value)):
            raise ConstructionError(
                f"linear endpoints are not interpolatable: {type(start_value).__name__}, "
                f"{type(end_value).__name__}"
            )
        super().__init__(Interval.of_duration(start, duration))
        self._a = start_value
        self._b = end_value
        self._easing = easing

    def _at(self, t: float) -> Any:
        u = _apply_curve(self._easing, progress(t, self.start, self.end))
        return lerp(self._a, self._b, u)


class Keyframes(Animation):
    """`(時刻, 値)` の列による区分補間。時刻は狭義単調増加。

    各区間は線形補間（`easing` 指定時は区間ごとに適用）。定義域は最初と最後のキー時刻。
    """

    __slots__ = ("_times", "_values", "_easing")

    def __init__(self, keys: Iterable[tuple[float, Any]], easing: Curve | None = None) -> None:
        pairs = [(float(k), v) for k, v in keys]
        if not pairs:
            raise ConstructionError("keyframes require at least one key")
        times = [k for k, _ in pairs]
        for prev, cur in zip(times, times[1:]):
            if not cur > prev:
                raise ConstructionError(f"keyframe times must be strictly increasing: {prev} -> {cur}")
        if any(not math.isfinite(k) for k in times):
            raise ConstructionError("keyframe times must be finite")
        values = [v for _, v in pairs]
        if len(values) > 1 and not all(is_interpolatable(v) for v in values):
            raise ConstructionError("keyframe values are not interpolatable")
        super().__init__(Interval(times[0], times[-1]))
        self._times = tuple(times)
        self._values = tuple(values)
        self._easing = easing

    @property
    def keys(self) -> tuple[tuple[float, Any], ...]:
        return tuple(zip(self._times, self._values))

    def _at(self, t: float) -> Any:
        times = self._times
        if len(times) == 1 or t >= times[-1]:
            return self._values[-1]
        # 区間探索（二分）
        lo, hi = 0, len(times) - 1
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if times[mid] <= t:
                lo = mid
            else:
                hi = mid
        u = _apply_curve(self._easing, progress(t, times[lo], times[hi]))
        return lerp(self._values[lo], self._values[hi], u)


class Parametric(Animation):
    """任意の純関数 `fn(t)` を定義域つきで包む。

    `fn` は `t` 以外の可変状態に依存してはならない（呼び出し側の責務）。
    """

    __slots__ = ("_fn",)

    def __init__(self, fn: Callable[[float], Any], domain: Interval | None = None) -> None:
        if not callable(fn):
            raise ConstructionError("parametric animation requires a callable")
        super().__init__(domain if domain is not None else Interval())
        self._fn = fn

    def _at(self, t: float) -> Any:
        return self._fn(t)


class Bezier(Animation):
    """制御点列のベジェ曲線を `[start, start+duration]` に沿って評価する（4 点で 3 次）。"""

    __slots__ = ("_points", "_easing")

    def __init__(
        self,
        points: Sequence[Any],
        duration: float,
        easing: Curve | None = None,
        *,
        start: float = 0.0,
    ) -> None:
        pts = tuple(points)
        if len(pts) < 2:
            raise ConstructionError("bezier requires at least two control points")
        if not all(is_interpolatable(p) for p in pts):
            raise ConstructionError("bezier control points are not interpolatable")
        if not math.isfinite(duration) or duration < 0:
            raise ConstructionError("bezier duration must be finite and non-negative")
        super().__init__(Interval.of_duration(start, duration))
        self._points = pts
        self._easing = easing

    def _at(self, t: float) -> Any:
        u = _apply_curve(self._easing, progress(t, self.start, self.end))
        if u == 0.0:
            return self._points[0]
        if u == 1.0:
            return self._points[-1]
        return bezier_point(self._points, u)


__all__ = ["Constant", "Linear", "Keyframes", "Parametric", "Bezier", "Curve"]
