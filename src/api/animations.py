"""
どこで: `api.animations`（時間変化の高レベル API）。
何を: 登録済み Animation ファクトリと合成子（sequence/parallel/ease/loop/reverse/shift）をまとめたファサード `A`。
なぜ: イージングを名前で指定しつつ、Animation の代数を 1 つの名前空間から組み立てられるようにするため。

Examples
--------
    from api import A

    spin = A.loop(A.linear(0.0, 360.0, 2.0), 3)
    fade = A.ease(A.linear(0.0, 1.0, 1.0), "ease_in_out")
    wobble = A.parallel(spin, A.oscillator("sine", freq=2.0, lo=-5, hi=5), merge="additive")
"""

from __future__ import annotations

from typing import Any, Callable

import animations  # noqa: F401  (登録目的の副作用)
from animations.registry import (
    EasingFn,
    create_animation,
    is_animation_registered,
    list_animations,
    list_easings,
    resolve_easing,
)
from engine.animation import combinators
from engine.animation.base import Animation
from engine.animation.merge import MergePolicy


class AnimationsAPI:
    """`A` の実体。合成子はメソッド、葉 Animation はレジストリから `A.<name>(...)` で解決する。"""

    MergePolicy = MergePolicy

    # === 合成子 ===
    @staticmethod
    def sequence(a: Animation, b: Animation, *more: Animation) -> Animation:
        return combinators.sequence(a, b, *more)

    @staticmethod
    def parallel(a: Animation, b: Animation, merge: MergePolicy | str | None = None) -> Animation:
        """`merge` は必須（None は ConstructionError）。"""
        return combinators.parallel(a, b, merge)

    @staticmethod
    def ease(a: Animation, curve: str | EasingFn) -> Animation:
        """`curve` はイージング名（例: "ease_in_out"）か呼び出し可能。"""
        fn = resolve_easing(curve)
        if fn is None:
            raise TypeError("ease にはイージングカーブが必要です")
        return combinators.ease(a, fn)

    @staticmethod
    def loop(a: Animation, n: int | None = None) -> Animation:
        return combinators.loop(a, n)

    @staticmethod
    def reverse(a: Animation) -> Animation:
        return combinators.reverse(a)

    @staticmethod
    def shift(a: Animation, dt: float) -> Animation:
        return combinators.shift(a, dt)

    @staticmethod
    def easings() -> list[str]:
        return list_easings()

    def _build_method(self, name: str) -> Callable[..., Animation]:
        def _animation_method(*args: Any, **params: Any) -> Animation:
            if not is_animation_registered(name):
                self.__dict__.pop(name, None)
                raise AttributeError(f"'{self.__class__.__name__}' has no attribute '{name}'")
            return create_animation(name, *args, **params)

        _animation_method.__name__ = name
        _animation_method.__qualname__ = f"{self.__class__.__name__}.{name}"
        return _animation_method

    def __getattr__(self, name: str) -> Callable[..., Animation]:
        if name.startswith("_"):
            raise AttributeError(name)
        if not is_animation_registered(name):
            raise AttributeError(f"'{self.__class__.__name__}' has no attribute '{name}'")
        method = self._build_method(name)
        self.__dict__[name] = method
        return method

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(list_animations()))


A = AnimationsAPI()

__all__ = ["A", "AnimationsAPI"]
