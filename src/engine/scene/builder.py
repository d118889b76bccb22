"""
どこで: `engine.scene.builder`
何を: シーン記述用の可変ビルダ `SceneBuilder`（add/link/animate → build）。
なぜ: 記述段階だけを可変にし、`build()` で閉路・宙吊り参照・単一ルート・同時書き込み方針を
      まとめて検証して不変な `Scene` を得るため。

使用例:
    b = SceneBuilder(duration=2.0)
    sq = b.add(StaticDrawable(Geometry.from_lines([[(0, 0), (10, 0)]])), name="sq")
    b.animate(sq, "translate", Linear((0, 0, 0), (100, 0, 0), 2.0))
    scene = b.build()
"""

from __future__ import annotations

from typing import Any, Iterable

from common.settings import get as _get_settings
from common.types import FrameSize
from engine.animation.base import Animation
from engine.animation.merge import MergePolicy
from engine.core.drawable import Drawable, StaticDrawable
from engine.core.errors import ConstructionError
from engine.core.geometry import Geometry
from engine.core.interval import Interval

from .cache import EvaluationCache
from .node import AttributeKind, Node, NodeHandle
from .scene import Scene, SceneLineage
from .timeline import Binding, Timeline, resolve_target


class SceneBuilder:
    """不変な `Scene` を組み立てるビルダ。

    Parameters
    ----------
    duration : float, optional
        シーンの長さ [秒]（`[start, start+duration]`）。省略時はバインディングの範囲から推定。
    start : float, default 0.0
    fps : int, optional
        既定は設定値 `PXA_DEFAULT_FPS`。
    frame_size : (width, height), default (640, 480)
    background : color, default 白
    cache : EvaluationCache, optional
        系譜で共有するキャッシュ（既定は設定値から生成）。
    """

    def __init__(
        self,
        *,
        duration: float | None = None,
        start: float = 0.0,
        fps: int | None = None,
        frame_size: FrameSize = (640, 480),
        background: Any = (1.0, 1.0, 1.0, 1.0),
        cache: EvaluationCache | None = None,
    ) -> None:
        self._lineage = SceneLineage(cache)
        self._duration = duration
        self._start = float(start)
        self._fps = int(fps if fps is not None else _get_settings().DEFAULT_FPS)
        self._frame_size = frame_size
        self._background = background
        self._nodes: dict[NodeHandle, Node] = {}
        self._bindings: list[Binding] = []
        self._root = self._new_node(StaticDrawable(Geometry.empty()), "root", False, None)

    def _new_node(
        self,
        drawable: Drawable,
        name: str,
        required: bool,
        visibility: Iterable[Interval] | None,
    ) -> NodeHandle:
        if not isinstance(drawable, Drawable):
            raise ConstructionError(f"{type(drawable).__name__} does not satisfy the Drawable capability")
        handle = NodeHandle(self._lineage.next_id(), name)
        self._nodes[handle] = Node(
            handle,
            drawable,
            (),
            bool(required),
            None if visibility is None else tuple(visibility),
        )
        return handle

    def _node(self, handle: NodeHandle) -> Node:
        try:
            return self._nodes[handle]
        except KeyError:
            raise ConstructionError(f"unknown node handle {handle}") from None

    @property
    def root(self) -> NodeHandle:
        return self._root

    def add(
        self,
        drawable: Drawable,
        parent: NodeHandle | None = None,
        *,
        name: str = "",
        required: bool = False,
        visibility: Iterable[Interval] | None = None,
    ) -> NodeHandle:
        """ノードを `parent`（既定はルート）の末尾の子として追加する。"""
        p = self._node(self._root if parent is None else parent)
        handle = self._new_node(drawable, name, required, visibility)
        self._nodes[p.handle] = p.evolve(children=(*p.children, handle))
        return handle

    def group(self, parent: NodeHandle | None = None, *, name: str = "") -> NodeHandle:
        """空ジオメトリのグループノードを追加する。"""
        return self.add(StaticDrawable(Geometry.empty()), parent, name=name)

    def link(self, parent: NodeHandle, child: NodeHandle) -> None:
        """既存ノードを別の親からも参照する（DAG 共有）。閉路は `build()` で検出。"""
        p = self._node(parent)
        self._node(child)
        if child in p.children:
            raise ConstructionError(f"{child} is already a child of {parent}")
        self._nodes[parent] = p.evolve(children=(*p.children, child))

    def animate(
        self,
        handle: NodeHandle,
        target: str | AttributeKind,
        animation: Animation,
        *,
        prop: str | None = None,
        start: float = 0.0,
        merge: MergePolicy | str | None = None,
        hold: bool = False,
    ) -> int:
        """Animation を属性へ結びつけ、binding_id を返す。"""
        self._node(handle)
        if not isinstance(animation, Animation):
            raise ConstructionError(f"animate expects an Animation, got {type(animation).__name__}")
        attribute, prop = resolve_target(target, prop)
        binding = Binding(
            binding_id=self._lineage.next_id(),
            handle=handle,
            attribute=attribute,
            prop=prop,
            animation=animation,
            start=float(start),
            merge=None if merge is None else MergePolicy.coerce(merge),
            hold=bool(hold),
            revision=self._lineage.clock.next(),
        )
        self._bindings.append(binding)
        return binding.binding_id

    def _time_range(self, timeline: Timeline) -> Interval:
        if self._duration is not None:
            return Interval.of_duration(self._start, float(self._duration))
        extent = timeline.extent()
        if extent is None or not extent.is_bounded:
            raise ConstructionError(
                "scene duration could not be inferred from bindings; pass duration explicitly"
            )
        return Interval(min(self._start, extent.start), extent.end)

    def build(self) -> Scene:
        """検証して不変な `Scene` を返す。"""
        timeline = Timeline(self._bindings)
        return Scene(
            root=self._root,
            nodes=self._nodes,
            time_range=self._time_range(timeline),
            timeline=timeline,
            lineage=self._lineage,
            background=self._background,
            fps=self._fps,
            frame_size=self._frame_size,
        )


__all__ = ["SceneBuilder"]
