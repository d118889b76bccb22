"""
どこで: `engine.evaluate.attributes`
何を: ドローアブルの値とタイムラインのバインディングから、時刻 t のローカル属性
      （Geometry / Transform / Style）を求める純関数群。
なぜ: 合成規則（宣言順・明示マージ）を評価器本体から分離し、キャッシュの計算関数として渡すため。

Transform:
- バインディングが 1 本も作用していなければドローアブル自身の変換をそのまま使う。
- 作用していれば成分（translate=0, rotate=0, scale=1 を初期値）を合成し、
  `from_trs(translate, rotate, scale) · drawable.transform(t)` とする。
Style:
- color は各バインディング値を RGBA(0–1) へ正規化してから合成し、合成後に [0, 1] へ丸める。opacity も同様に丸める。
"""

from __future__ import annotations

from typing import Any, Iterable

from engine.animation.merge import MergePolicy, blend
from engine.core.geometry import Geometry
from engine.core.style import Style
from engine.core.transform import Transform
from engine.scene.node import Node
from engine.scene.timeline import Binding
from util.color import normalize_color

_TRS_IDENTITY: dict[str, Any] = {
    "translate": (0.0, 0.0, 0.0),
    "rotate": (0.0, 0.0, 0.0),
    "scale": (1.0, 1.0, 1.0),
}


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else float(x)


def _fold(acc: Any, binding: Binding, t: float) -> Any:
    value = binding.value(t)
    if binding.merge is None or binding.merge is MergePolicy.OVERRIDE:
        return value
    return blend(binding.merge, acc, value)


def _active(bindings: Iterable[Binding], t: float) -> list[Binding]:
    return [b for b in bindings if b.is_active(t)]


def _component(prop: str, value: Any) -> tuple[float, float, float]:
    """TRS 成分値を 3 成分タプルへ揃える。

    - スカラ: rotate は Z 軸回転、scale は等方、translate は X 方向のみ。
    - 2 成分: translate/rotate は Z=0、scale は Z=1 を補う。
    """
    if isinstance(value, (int, float)):
        v = float(value)
        if prop == "rotate":
            return (0.0, 0.0, v)
        if prop == "scale":
            return (v, v, v)
        return (v, 0.0, 0.0)
    seq = tuple(float(x) for x in value)
    if len(seq) == 2:
        return (seq[0], seq[1], 1.0 if prop == "scale" else 0.0)
    if len(seq) != 3:
        raise ValueError(f"{prop} must have 2 or 3 components, got {len(seq)}")
    return (seq[0], seq[1], seq[2])


def resolve_geometry(node: Node, bindings: Iterable[Binding], t: float) -> Geometry:
    acc: Any = node.drawable.geometry(t)
    for b in _active(bindings, t):
        acc = _fold(acc, b, t)
    if not isinstance(acc, Geometry):
        raise TypeError(f"geometry binding produced {type(acc).__name__}, expected Geometry")
    return acc


def resolve_transform(node: Node, bindings: Iterable[Binding], t: float) -> Transform:
    base = node.drawable.transform(t)
    active = _active(bindings, t)
    if not active:
        return base
    comps = dict(_TRS_IDENTITY)
    for b in active:
        assert b.prop is not None
        value = _component(b.prop, b.value(t))
        if b.merge is None or b.merge is MergePolicy.OVERRIDE:
            comps[b.prop] = value
        else:
            comps[b.prop] = blend(b.merge, comps[b.prop], value)
    local = Transform.from_trs(comps["translate"], comps["rotate"], comps["scale"])
    return local.compose(base)


def resolve_style(node: Node, bindings: Iterable[Binding], t: float) -> Style:
    base = node.drawable.style(t)
    active = _active(bindings, t)
    if not active:
        return base
    fields: dict[str, Any] = {"color": base.color, "thickness": base.thickness, "opacity": base.opacity}
    for b in active:
        assert b.prop is not None
        if b.prop == "color":
            value = normalize_color(b.value(t), scale=b.color_scale)
            if b.merge is None or b.merge is MergePolicy.OVERRIDE:
                fields["color"] = value
            else:
                fields["color"] = blend(b.merge, fields["color"], value)
        else:
            fields[b.prop] = _fold(fields[b.prop], b, t)
    return Style(
        color=tuple(_clamp01(float(c)) for c in fields["color"]),
        thickness=max(0.0, float(fields["thickness"])),
        opacity=_clamp01(float(fields["opacity"])),
    )


__all__ = ["resolve_geometry", "resolve_transform", "resolve_style"]
