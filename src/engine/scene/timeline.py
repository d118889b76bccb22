"""
どこで: `engine.scene.timeline`
何を: Animation をノード属性へ区間つきで結びつける `Binding` と、その順序付き集合 `Timeline`。
なぜ: 同一属性への同時書き込みに明示的なマージ方針を要求し（暗黙の後勝ちを禁止）、
      宣言順による決定的な合成順を保証するため。

バインディングの時間:
- ローカル時刻は `animation.start + (t - binding.start)`。
- 色のバインディングは生成時に Animation を標本化して尺度（0–1 か 0–255）を固定する。
- 作用区間は `[start, start + animation.duration]`。`hold=True` なら終端値を保持して右側非有界。

合成規則（評価器が使用）:
- 書き込み先の初期値はドローアブル自身の値（Transform 成分は恒等: translate=0, rotate=0, scale=1）。
- 作用中のバインディングを宣言順に適用する。`merge` が None/override なら置換、それ以外は `blend`。
- 先行バインディングと作用区間が重なる後続バインディングは `merge` 必須（無ければ ConstructionError）。
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator

from engine.animation.base import Animation
from engine.animation.merge import MergePolicy, check_compatible
from engine.core.errors import ConstructionError
from engine.core.interval import Interval
from util.color import probe_color_scale

from .node import AttributeKind, NodeHandle

TRANSFORM_PROPS = ("translate", "rotate", "scale")
STYLE_PROPS = ("color", "thickness", "opacity")

# 単独プロパティ名 → (属性, プロパティ)
PROP_TARGETS: dict[str, tuple[AttributeKind, str | None]] = {
    "geometry": (AttributeKind.GEOMETRY, None),
    **{p: (AttributeKind.TRANSFORM, p) for p in TRANSFORM_PROPS},
    **{p: (AttributeKind.STYLE, p) for p in STYLE_PROPS},
}


def resolve_target(target: str | AttributeKind, prop: str | None = None) -> tuple[AttributeKind, str | None]:
    """`"translate"` のような短縮名、または `(属性, プロパティ)` を正規化する。"""
    if isinstance(target, AttributeKind):
        attribute = target
    else:
        key = str(target).strip().lower()
        if key in PROP_TARGETS and prop is None:
            return PROP_TARGETS[key]
        try:
            attribute = AttributeKind(key)
        except ValueError as e:
            raise ConstructionError(f"unknown animation target: {target!r}") from e
    if attribute is AttributeKind.WORLD_TRANSFORM:
        raise ConstructionError("world_transform is derived and cannot be animated")
    if attribute is AttributeKind.GEOMETRY:
        if prop is not None:
            raise ConstructionError("geometry bindings take no property")
        return attribute, None
    allowed = TRANSFORM_PROPS if attribute is AttributeKind.TRANSFORM else STYLE_PROPS
    if prop not in allowed:
        raise ConstructionError(f"{attribute.value} binding needs a property in {allowed}, got {prop!r}")
    return attribute, prop


@dataclass(frozen=True, slots=True)
class Binding:
    binding_id: int
    handle: NodeHandle
    attribute: AttributeKind
    prop: str | None
    animation: Animation
    start: float = 0.0
    merge: MergePolicy | None = None
    hold: bool = False
    revision: int = 0  # 結びつけ/Animation 差し替え時に払い出す寄与者番号
    color_scale: float = field(default=1.0, init=False, compare=False)

    def __post_init__(self) -> None:
        # 色の尺度（0–1 / 0–255）は値ごとではなく結びつけ時に一度だけ決める
        if self.prop == "color" and isinstance(self.animation, Animation):
            anim = self.animation
            try:
                scale = probe_color_scale(anim.at, anim.start, anim.end)
            except (TypeError, ValueError) as e:
                raise ConstructionError(
                    f"binding {self.binding_id} color animation does not yield colors: {e}"
                ) from e
            object.__setattr__(self, "color_scale", scale)

    @property
    def key(self) -> tuple[NodeHandle, AttributeKind, str | None]:
        return (self.handle, self.attribute, self.prop)

    @property
    def window(self) -> Interval:
        if self.hold:
            return Interval(self.start, math.inf)
        return Interval.of_duration(self.start, self.animation.duration)

    def is_active(self, t: float) -> bool:
        return self.window.contains(t)

    def value(self, t: float) -> Any:
        """シーン時刻 `t` における値（作用区間内で呼ぶこと）。"""
        anim = self.animation
        local = anim.start + (t - self.start)
        if local > anim.end:
            local = anim.end
        return anim.at(local)


class Timeline:
    """不変なバインディング列。編集は新しい Timeline を返す。"""

    __slots__ = ("_bindings", "_by_slot")

    def __init__(self, bindings: Iterable[Binding] = ()) -> None:
        self._bindings: tuple[Binding, ...] = tuple(bindings)
        by_slot: dict[tuple[NodeHandle, AttributeKind], list[Binding]] = {}
        for b in self._bindings:
            by_slot.setdefault((b.handle, b.attribute), []).append(b)
        self._by_slot = {k: tuple(v) for k, v in by_slot.items()}
        self._validate()

    # ---- 参照 ----
    def __iter__(self) -> Iterator[Binding]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    @property
    def bindings(self) -> tuple[Binding, ...]:
        return self._bindings

    def bindings_for(self, handle: NodeHandle, attribute: AttributeKind) -> tuple[Binding, ...]:
        """宣言順のバインディング列。"""
        return self._by_slot.get((handle, attribute), ())

    def get(self, binding_id: int) -> Binding:
        for b in self._bindings:
            if b.binding_id == binding_id:
                return b
        raise KeyError(f"binding {binding_id} not found")

    def extent(self) -> Interval | None:
        """全バインディングの作用区間の包（hold は無視）。"""
        out: Interval | None = None
        for b in self._bindings:
            w = Interval.of_duration(b.start, b.animation.duration)
            out = w if out is None else out.hull(w)
        return out

    # ---- 編集（新しい Timeline を返す） ----
    def add(self, binding: Binding) -> "Timeline":
        return Timeline((*self._bindings, binding))

    def remove(self, binding_id: int) -> "Timeline":
        self.get(binding_id)
        return Timeline(b for b in self._bindings if b.binding_id != binding_id)

    def replace_animation(
        self, binding_id: int, animation: Animation, revision: int | None = None
    ) -> "Timeline":
        old = self.get(binding_id)
        rev = old.revision if revision is None else revision
        return Timeline(
            replace(b, animation=animation, revision=rev) if b.binding_id == binding_id else b
            for b in self._bindings
        )

    def without_nodes(self, handles: set[NodeHandle]) -> "Timeline":
        return Timeline(b for b in self._bindings if b.handle not in handles)

    # ---- 検証 ----
    def _validate(self) -> None:
        seen_ids: set[int] = set()
        for b in self._bindings:
            if b.binding_id in seen_ids:
                raise ConstructionError(f"duplicate binding id {b.binding_id}")
            seen_ids.add(b.binding_id)
            if not isinstance(b.animation, Animation):
                raise ConstructionError(f"binding {b.binding_id} does not hold an Animation")
            if not math.isfinite(b.start):
                raise ConstructionError(f"binding {b.binding_id} start must be finite")
            if b.attribute is AttributeKind.GEOMETRY and b.merge is MergePolicy.MAX:
                raise ConstructionError("max merge is not defined for geometry")

        by_key: dict[tuple[NodeHandle, AttributeKind, str | None], list[Binding]] = {}
        for b in self._bindings:
            earlier = by_key.setdefault(b.key, [])
            for prev in earlier:
                common = prev.window.intersection(b.window)
                if common is None:
                    continue
                if b.merge is None:
                    raise ConstructionError(
                        f"bindings {prev.binding_id} and {b.binding_id} both write "
                        f"{b.attribute.value}{'.' + b.prop if b.prop else ''} of node {b.handle} "
                        f"during {common}; declare an explicit merge policy"
                    )
                check_compatible(b.merge, prev.value(common.start), b.value(common.start))
            earlier.append(b)


__all__ = [
    "Binding",
    "Timeline",
    "TRANSFORM_PROPS",
    "STYLE_PROPS",
    "PROP_TARGETS",
    "resolve_target",
]
