"""
どこで: `animations.easings`
何を: 組み込みイージングカーブ（linear / quad / cubic / sine / smoothstep）。
なぜ: `ease(a, "ease_in_out")` のように名前で指定できるようにするため。

いずれも `f(0) = 0`, `f(1) = 1` かつ単調非減少（`ease` 合成子の構築時検査を通る）。
"""

from __future__ import annotations

import math

from .registry import easing


@easing
def linear(u: float) -> float:
    return u


@easing
def ease_in(u: float) -> float:
    return u * u


@easing
def ease_out(u: float) -> float:
    return u * (2.0 - u)


@easing
def ease_in_out(u: float) -> float:
    return 2.0 * u * u if u < 0.5 else 1.0 - 2.0 * (1.0 - u) * (1.0 - u)


@easing
def ease_in_cubic(u: float) -> float:
    return u * u * u


@easing
def ease_out_cubic(u: float) -> float:
    v = 1.0 - u
    return 1.0 - v * v * v


@easing
def ease_in_out_cubic(u: float) -> float:
    if u < 0.5:
        return 4.0 * u * u * u
    v = -2.0 * u + 2.0
    return 1.0 - v * v * v / 2.0


@easing
def ease_in_sine(u: float) -> float:
    return 1.0 - math.cos(u * math.pi / 2.0)


@easing
def ease_out_sine(u: float) -> float:
    return math.sin(u * math.pi / 2.0)


@easing
def ease_in_out_sine(u: float) -> float:
    return -(math.cos(math.pi * u) - 1.0) / 2.0


@easing
def smoothstep(u: float) -> float:
    return u * u * (3.0 - 2.0 * u)
