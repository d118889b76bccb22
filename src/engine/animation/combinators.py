"""
どこで: `engine.animation.combinators`
何を: Animation の合成子（sequence/parallel/ease/loop/reverse/shift）。
なぜ: 時間変化を「状態の書き換え」ではなく純関数の合成として記述し、
      不整合（非有界の後ろに連結する等）を評価前の構築時点で `ConstructionError` として弾くため。

境界の規約:
- `sequence(a, b)`: `t == a.end` は a に属する。b は開始が a.end に一致するよう平行移動される。
- `loop(a, n)`: 各周回の先頭 `t = a.start + k·d` は k 周目の先頭値 `a(a.start)`。有限 n の終端は `a(a.end)`。
- `reverse(a)(t) = a(a.start + a.end - t)`。`reverse(reverse(a))` は a そのものを返す。
- `ease(a, curve)`: `curve` は `[0,1] → [0,1]`、`curve(0)=0`, `curve(1)=1`、単調非減少（サンプル検査）。
"""

from __future__ import annotations

import math
from typing import Any, Callable

from common.settings import get as _get_settings
from engine.core.errors import ConstructionError
from engine.core.interval import Interval

from .base import Animation
from .merge import MergePolicy, blend, check_compatible

_EPS = 1e-9


def _require_animation(a: Any, name: str) -> Animation:
    if not isinstance(a, Animation):
        raise ConstructionError(f"{name} expects an Animation, got {type(a).__name__}")
    return a


def _require_bounded(a: Animation, op: str) -> None:
    if not a.is_bounded:
        raise ConstructionError(f"{op} requires a bounded animation, got domain {a.domain}")


class Sequence(Animation):
    __slots__ = ("_first", "_second")

    def __init__(self, first: Animation, second: Animation) -> None:
        _require_bounded(first, "sequence")
        super().__init__(Interval(first.start, first.end + second.duration))
        self._first = first
        self._second = second

    def _at(self, t: float) -> Any:
        if t <= self._first.end:
            return self._first._at(t)
        local = self._second.start + (t - self._first.end)
        # 浮動小数誤差で b の終端をわずかに越える場合は終端へ丸める
        if local > self._second.end:
            local = self._second.end
        return self._second._at(local)


class Parallel(Animation):
    __slots__ = ("_a", "_b", "_merge")

    def __init__(self, a: Animation, b: Animation, merge: MergePolicy) -> None:
        if not a.domain.overlaps(b.domain):
            raise ConstructionError(
                f"parallel requires overlapping domains, got {a.domain} and {b.domain}"
            )
        super().__init__(a.domain.hull(b.domain))
        self._a = a
        self._b = b
        self._merge = merge
        # 共通区間の代表時刻で合成可能性を検査する
        common = a.domain.intersection(b.domain)
        assert common is not None
        check_compatible(merge, a._at(common.start), b._at(common.start))

    @property
    def merge(self) -> MergePolicy:
        return self._merge

    def _at(self, t: float) -> Any:
        in_a = self._a.domain.contains(t)
        in_b = self._b.domain.contains(t)
        if in_a and in_b:
            return blend(self._merge, self._a._at(t), self._b._at(t))
        if in_a:
            return self._a._at(t)
        return self._b._at(t)


class Eased(Animation):
    __slots__ = ("_inner", "_curve")

    def __init__(self, inner: Animation, curve: Callable[[float], float]) -> None:
        _require_bounded(inner, "ease")
        _check_curve(curve)
        super().__init__(inner.domain)
        self._inner = inner
        self._curve = curve

    def _at(self, t: float) -> Any:
        d = self._inner.duration
        if d == 0.0:
            return self._inner._at(self._inner.end)
        u = (t - self.start) / d
        v = float(self._curve(min(1.0, max(0.0, u))))
        v = 0.0 if v < 0.0 else 1.0 if v > 1.0 else v
        if v == 1.0:
            return self._inner._at(self._inner.end)
        return self._inner._at(self._inner.start + v * d)


class Loop(Animation):
    __slots__ = ("_inner", "_count")

    def __init__(self, inner: Animation, count: int | None) -> None:
        _require_bounded(inner, "loop")
        if not inner.duration > 0.0:
            raise ConstructionError("loop requires an animation with positive duration")
        if count is not None:
            if isinstance(count, bool) or int(count) != count or count < 1:
                raise ConstructionError(f"loop count must be a positive integer or None, got {count!r}")
            count = int(count)
        end = math.inf if count is None else inner.start + inner.duration * count
        super().__init__(Interval(inner.start, end))
        self._inner = inner
        self._count = count

    @property
    def count(self) -> int | None:
        return self._count

    def _at(self, t: float) -> Any:
        inner = self._inner
        d = inner.duration
        rel = t - inner.start
        k = math.floor(rel / d)
        s = rel - k * d
        if s < 0.0:
            k -= 1
            s += d
        # 周期の境界は丸め誤差（数 ulp）の範囲だけ次の周期の先頭へ寄せる
        if d - s <= 4.0 * math.ulp(max(abs(rel), d)):
            k += 1
            s = 0.0
        if self._count is not None and k >= self._count:
            return inner._at(inner.end)
        return inner._at(inner.start + min(max(s, 0.0), d))


class Reversed(Animation):
    __slots__ = ("_inner",)

    def __init__(self, inner: Animation) -> None:
        _require_bounded(inner, "reverse")
        super().__init__(inner.domain)
        self._inner = inner

    @property
    def inner(self) -> Animation:
        return self._inner

    def _at(self, t: float) -> Any:
        local = self._inner.start + self._inner.end - t
        local = min(self._inner.end, max(self._inner.start, local))
        return self._inner._at(local)


class Shifted(Animation):
    """定義域を `dt` だけ平行移動する（`shifted(t) = inner(t - dt)`）。"""

    __slots__ = ("_inner", "_dt")

    def __init__(self, inner: Animation, dt: float) -> None:
        super().__init__(inner.domain.shifted(dt))
        self._inner = inner
        self._dt = float(dt)

    def _at(self, t: float) -> Any:
        local = min(self._inner.end, max(self._inner.start, t - self._dt))
        return self._inner._at(local)


def _check_curve(curve: Callable[[float], float]) -> None:
    if not callable(curve):
        raise ConstructionError("ease curve must be callable")
    n = max(2, int(_get_settings().EASE_CHECK_SAMPLES))
    try:
        samples = [float(curve(i / (n - 1))) for i in range(n)]
    except (TypeError, ValueError, ArithmeticError) as e:
        raise ConstructionError(f"ease curve failed on [0, 1]: {e}") from e
    if abs(samples[0]) > _EPS or abs(samples[-1] - 1.0) > _EPS:
        raise ConstructionError(
            f"ease curve must map 0 -> 0 and 1 -> 1, got {samples[0]:g} and {samples[-1]:g}"
        )
    for i, (prev, cur) in enumerate(zip(samples, samples[1:])):
        if cur < prev - _EPS:
            raise ConstructionError(
                f"ease curve must be monotonic non-decreasing (drops near u={(i + 1) / (n - 1):.3f})"
            )


# ── 公開ファクトリ ───────────────────────────
def sequence(a: Animation, b: Animation, *more: Animation) -> Animation:
    """`a` の後に `b`（以降 `more`）を連結する。`a` は有界でなければならない。"""
    result = _require_animation(a, "sequence")
    for nxt in (b, *more):
        result = Sequence(result, _require_animation(nxt, "sequence"))
    return result


def parallel(a: Animation, b: Animation, merge: MergePolicy | str | None) -> Animation:
    """`a` と `b` を同時に適用する。共通区間では `merge` で合成（必須）。"""
    policy = MergePolicy.coerce(merge)
    return Parallel(_require_animation(a, "parallel"), _require_animation(b, "parallel"), policy)


def ease(a: Animation, curve: Callable[[float], float]) -> Animation:
    """`a` の時間軸を単調カーブで再パラメータ化する。"""
    return Eased(_require_animation(a, "ease"), curve)


def loop(a: Animation, n: int | None = None) -> Animation:
    """`a` を `n` 回（None は無限）繰り返す。"""
    return Loop(_require_animation(a, "loop"), n)


def reverse(a: Animation) -> Animation:
    """`a` の定義域内で時間を反転する。"""
    a = _require_animation(a, "reverse")
    if isinstance(a, Reversed):
        return a.inner
    return Reversed(a)


def shift(a: Animation, dt: float) -> Animation:
    """`a` を `dt` 秒遅らせる（負で早める）。"""
    a = _require_animation(a, "shift")
    if dt == 0.0:
        return a
    return Shifted(a, dt)


__all__ = [
    "sequence",
    "parallel",
    "ease",
    "loop",
    "reverse",
    "shift",
    "Sequence",
    "Parallel",
    "Eased",
    "Loop",
    "Reversed",
    "Shifted",
]
