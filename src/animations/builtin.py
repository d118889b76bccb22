"""
どこで: `animations.builtin`
何を: コアの基本 Animation（constant/linear/keyframes/bezier/parametric）を名前付きファクトリとして登録する。
なぜ: `create_animation("linear", ...)` やイージング名の解決を、コアをレジストリに依存させずに提供するため。
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Sequence

from engine.animation.base import Animation
from engine.animation.primitives import Bezier, Constant, Keyframes, Linear, Parametric
from engine.core.interval import Interval

from .registry import EasingFn, animation, resolve_easing


@animation
def constant(value: Any, duration: float = math.inf, *, start: float = 0.0) -> Animation:
    return Constant(value, duration, start=start)


@animation
def linear(
    start_value: Any,
    end_value: Any,
    duration: float,
    easing: str | EasingFn | None = None,
    *,
    start: float = 0.0,
) -> Animation:
    """`start_value -> end_value` の補間。`easing` は名前（例: "ease_in_out"）か呼び出し可能。"""
    return Linear(start_value, end_value, duration, resolve_easing(easing), start=start)


@animation
def keyframes(keys: Iterable[tuple[float, Any]], easing: str | EasingFn | None = None) -> Animation:
    return Keyframes(keys, resolve_easing(easing))


@animation
def bezier(
    points: Sequence[Any],
    duration: float,
    easing: str | EasingFn | None = None,
    *,
    start: float = 0.0,
) -> Animation:
    return Bezier(points, duration, resolve_easing(easing), start=start)


@animation
def parametric(fn: Callable[[float], Any], *, start: float = 0.0, end: float = math.inf) -> Animation:
    """純関数 `fn(t)` を `[start, end]` で包む。"""
    return Parametric(fn, Interval(start, end))
