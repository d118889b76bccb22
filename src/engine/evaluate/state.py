"""
どこで: `engine.evaluate.state`
何を: 評価結果（時刻 t におけるシーンの平坦化）`SceneState` と各要素 `RenderItem`。
なぜ: 評価器とスケジューラ/レンダラの境界を不変な値で固定するため。
"""

from __future__ import annotations

from dataclasses import dataclass

from engine.core.diagnostics import DiagnosticEvent
from engine.core.geometry import Geometry
from engine.core.style import Style
from engine.core.transform import Transform
from engine.scene.node import NodeHandle


@dataclass(frozen=True, slots=True)
class RenderItem:
    handle: NodeHandle
    path: tuple[NodeHandle, ...]
    world: Transform
    geometry: Geometry
    style: Style
    # False は DomainError を吸収した無効マーカー
    valid: bool = True

    def same_as(self, other: "RenderItem") -> bool:
        """値として同一か（診断や生成順序は無視）。"""
        return (
            self.handle == other.handle
            and self.path == other.path
            and self.valid == other.valid
            and self.world == other.world
            and self.style == other.style
            and self.geometry.equals(other.geometry)
        )


@dataclass(frozen=True, slots=True)
class SceneState:
    t: float
    items: tuple[RenderItem, ...]
    diagnostics: tuple[DiagnosticEvent, ...] = ()

    def same_as(self, other: "SceneState") -> bool:
        if self.t != other.t or len(self.items) != len(other.items):
            return False
        return all(a.same_as(b) for a, b in zip(self.items, other.items))

    @property
    def valid_items(self) -> tuple[RenderItem, ...]:
        return tuple(i for i in self.items if i.valid)

    def item(self, handle: NodeHandle) -> RenderItem:
        for i in self.items:
            if i.handle == handle:
                return i
        raise KeyError(f"node {handle} is not in the evaluated state")

    def renderer_inputs(self) -> tuple[list[Geometry], list[Transform], list[Style]]:
        """レンダラ契約 `render(geometries, transforms, styles, frame_size)` 向けの並列リスト。"""
        items = self.valid_items
        return (
            [i.geometry for i in items],
            [i.world for i in items],
            [i.style for i in items],
        )


__all__ = ["RenderItem", "SceneState"]
