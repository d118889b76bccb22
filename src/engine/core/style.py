"""
どこで: `engine.core.style`
何を: 描画スタイル（色 RGBA 0–1・線幅・不透明度）の不変値型。
なぜ: Drawable が時刻ごとに返すスタイルを比較可能な値として扱い、キャッシュ/レンダラに渡すため。
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from common.types import RGBA
from util.color import normalize_color


@dataclass(frozen=True, slots=True)
class Style:
    color: RGBA = (0.0, 0.0, 0.0, 1.0)
    thickness: float = 1.0
    opacity: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", normalize_color(self.color))
        if self.thickness < 0.0:
            raise ValueError("thickness must be non-negative")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError("opacity must be within [0, 1]")

    @classmethod
    def default(cls) -> "Style":
        return DEFAULT_STYLE

    def with_props(self, **props: Any) -> "Style":
        """一部フィールドを差し替えた新しい Style。`color` は正規化される。"""
        return replace(self, **props)

    @property
    def effective_rgba(self) -> RGBA:
        """不透明度をアルファへ乗じた RGBA。"""
        r, g, b, a = self.color
        return (r, g, b, a * self.opacity)


DEFAULT_STYLE = Style()

__all__ = ["Style", "DEFAULT_STYLE"]
