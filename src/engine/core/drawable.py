"""
どこで: `engine.core.drawable`
何を: 描画可能物の能力インタフェース `Drawable` と、その最小実装（静的/自己アニメーション）。
なぜ: 評価器・スケジューラが閉じた型列挙に依存せず、能力（メソッド）だけで任意の描画物を扱うため。

契約:
- `geometry(t)` / `transform(t)` / `style(t)` は `validity` 上で全域かつ純粋（t と自身の不変定義のみに依存）。
- 区間外の `t` は `DomainError`（メッセージに区間を含む）。
- 同一インスタンスを複数ワーカから同時に評価してよい（内部状態を持たない）。
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from util.color import normalize_color, probe_color_scale

from .geometry import Geometry
from .interval import ALWAYS, Interval
from .style import DEFAULT_STYLE, Style
from .transform import Transform


@runtime_checkable
class Drawable(Protocol):
    """描画可能物の能力インタフェース。"""

    @property
    def validity(self) -> Interval: ...

    def geometry(self, t: float) -> Geometry: ...

    def transform(self, t: float) -> Transform: ...

    def style(self, t: float) -> Style: ...


class DrawableBase:
    """区間チェックを済ませてから `_geometry/_transform/_style` へ委譲する基底。

    サブクラスは `_geometry` を実装し、必要に応じ `_transform` / `_style` を上書きする。
    """

    def __init__(self, validity: Interval | None = None) -> None:
        self._validity = validity if validity is not None else ALWAYS

    @property
    def validity(self) -> Interval:
        return self._validity

    def geometry(self, t: float) -> Geometry:
        return self._geometry(self._validity.check(t))

    def transform(self, t: float) -> Transform:
        return self._transform(self._validity.check(t))

    def style(self, t: float) -> Style:
        return self._style(self._validity.check(t))

    # ---- サブクラス実装点 ----
    def _geometry(self, t: float) -> Geometry:
        raise NotImplementedError

    def _transform(self, t: float) -> Transform:
        return Transform.identity()

    def _style(self, t: float) -> Style:
        return DEFAULT_STYLE


class StaticDrawable(DrawableBase):
    """時間に依存しない描画物。"""

    def __init__(
        self,
        geometry: Geometry,
        transform: Transform | None = None,
        style: Style | None = None,
        validity: Interval | None = None,
    ) -> None:
        super().__init__(validity)
        self._geom = geometry
        self._xf = transform if transform is not None else Transform.identity()
        self._sty = style if style is not None else DEFAULT_STYLE

    def _geometry(self, t: float) -> Geometry:
        return self._geom

    def _transform(self, t: float) -> Transform:
        return self._xf

    def _style(self, t: float) -> Style:
        return self._sty


def _resolve(value: Any, t: float) -> Any:
    # 呼び出し可能（Animation を含む）なら t で評価、それ以外は定数
    return value(t) if callable(value) else value


class AnimatedDrawable(DrawableBase):
    """各属性を定数または `t -> 値` の純関数（Animation 等）で与える描画物。

    Parameters
    ----------
    geometry : Geometry | Callable[[float], Geometry]
    translate, rotate, scale : 定数 or 呼び出し可能
        `Transform.from_trs` の引数として評価される。
    color, thickness, opacity : 定数 or 呼び出し可能
        `Style` のフィールドとして評価される。
    validity : Interval, optional
        既定は `[0, inf]`。
    """

    def __init__(
        self,
        geometry: Geometry | Callable[[float], Geometry],
        *,
        translate: Any = (0.0, 0.0, 0.0),
        rotate: Any = (0.0, 0.0, 0.0),
        scale: Any = (1.0, 1.0, 1.0),
        color: Any = DEFAULT_STYLE.color,
        thickness: Any = DEFAULT_STYLE.thickness,
        opacity: Any = DEFAULT_STYLE.opacity,
        validity: Interval | None = None,
    ) -> None:
        super().__init__(validity)
        self._geom = geometry
        self._trs = (translate, rotate, scale)
        self._sty = (color, thickness, opacity)
        # 時間変化する色は尺度（0–1 / 0–255）を生成時に一度だけ決める
        self._color_scale: float | None = None
        if callable(color):
            dom = getattr(color, "domain", None)
            if dom is None:
                dom = self.validity
            self._color_scale = probe_color_scale(color, dom.start, dom.end)

    def _geometry(self, t: float) -> Geometry:
        return _resolve(self._geom, t)

    def _transform(self, t: float) -> Transform:
        tr, rot, sc = (_resolve(v, t) for v in self._trs)
        return Transform.from_trs(tr, rot, sc)

    def _style(self, t: float) -> Style:
        color, thickness, opacity = (_resolve(v, t) for v in self._sty)
        if self._color_scale is not None:
            color = normalize_color(color, scale=self._color_scale)
        elif not isinstance(color, str):
            color = tuple(float(c) for c in color)
        return Style(color=color, thickness=float(thickness), opacity=float(opacity))


__all__ = ["Drawable", "DrawableBase", "StaticDrawable", "AnimatedDrawable"]
