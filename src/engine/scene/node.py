"""
どこで: `engine.scene.node`
何を: ノード識別子 `NodeHandle`、属性種別 `AttributeKind`、不変なノード `Node`。
なぜ: シーン階層の要素を値として扱い、編集は新しいスナップショットの生成で表すため。
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from engine.core.drawable import Drawable
from engine.core.interval import Interval


@dataclass(frozen=True, slots=True)
class NodeHandle:
    """ノードの安定識別子。等価性/ハッシュは `id` のみで決まる。"""

    id: int
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.name}#{self.id}" if self.name else f"#{self.id}"


class AttributeKind(str, Enum):
    GEOMETRY = "geometry"
    TRANSFORM = "transform"
    STYLE = "style"
    # 祖先変換の積（導出属性）
    WORLD_TRANSFORM = "world_transform"


@dataclass(frozen=True, slots=True)
class Node:
    handle: NodeHandle
    drawable: Drawable
    children: tuple[NodeHandle, ...] = ()
    required: bool = False
    # None は常時可視
    visibility: tuple[Interval, ...] | None = None

    def is_visible_at(self, t: float) -> bool:
        if self.visibility is None:
            return True
        return any(iv.contains(t) for iv in self.visibility)

    def evolve(self, **changes: Any) -> "Node":
        return replace(self, **changes)


__all__ = ["NodeHandle", "AttributeKind", "Node"]
