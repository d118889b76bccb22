"""
どこで: `engine.scene.scene`
何を: 不変なシーンスナップショット `Scene` と、明示的な編集操作（新しいスナップショットを返す）。
なぜ: レンダ中の読者と編集者が競合しないよう、編集を「新しいリビジョンの生成」として表すため。

系譜（lineage）:
- 同じ `build()` から派生したスナップショット群は `SceneLineage` を共有する。
- 系譜は `EvaluationCache` を所有し、ハンドル/バインディング ID とリビジョンはキャッシュの
  `RevisionClock` から払い出す（グローバル状態を持たない）。
- 各編集は `EditRecord(revision, op, handle)` を `edits` に追記する（編集の時刻印）。
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from common.types import RGBA, FrameSize
from engine.animation.base import Animation
from engine.animation.merge import MergePolicy
from engine.core.drawable import Drawable
from engine.core.errors import ConstructionError
from engine.core.interval import Interval
from util.color import normalize_color

from .cache import EvaluationCache, RevisionClock
from .graph import DependencyGraph, Slot, descendants
from .node import AttributeKind, Node, NodeHandle
from .timeline import Binding, Timeline, resolve_target

logger = logging.getLogger(__name__)

_LOCAL_KINDS = (AttributeKind.GEOMETRY, AttributeKind.TRANSFORM, AttributeKind.STYLE)


class SceneLineage:
    """スナップショット系譜が共有する可変資源（キャッシュと、その番号払い出し）。

    ハンドル ID・バインディング ID・リビジョンはすべてキャッシュの `RevisionClock` から取る。
    複数の系譜が同じキャッシュを共有しても番号は重ならない。
    """

    def __init__(self, cache: EvaluationCache | None = None) -> None:
        self.cache = cache if cache is not None else EvaluationCache()

    @property
    def clock(self) -> RevisionClock:
        return self.cache.clock

    def next_id(self) -> int:
        return self.cache.clock.next()


@dataclass(frozen=True, slots=True)
class EditRecord:
    revision: int
    op: str
    handle: NodeHandle | None = None
    binding_id: int | None = None


def _validate_structure(root: NodeHandle, nodes: Mapping[NodeHandle, Node]) -> None:
    if root not in nodes:
        raise ConstructionError(f"root {root} is not a node of the scene")
    for h, node in nodes.items():
        if node.handle != h:
            raise ConstructionError(f"node stored under {h} carries handle {node.handle}")
        if not isinstance(node.drawable, Drawable):
            raise ConstructionError(f"node {h} drawable does not satisfy the Drawable capability")
        if len(set(node.children)) != len(node.children):
            raise ConstructionError(f"node {h} lists a child more than once")
        for c in node.children:
            if c not in nodes:
                raise ConstructionError(f"node {h} references missing child {c}")
    # 閉路検出（白/灰/黒）
    state: dict[NodeHandle, int] = {}
    stack: list[tuple[NodeHandle, int]] = [(root, 0)]
    while stack:
        h, i = stack.pop()
        if i == 0:
            if state.get(h) == 2:
                continue
            state[h] = 1
        children = nodes[h].children
        if i < len(children):
            stack.append((h, i + 1))
            c = children[i]
            st = state.get(c)
            if st == 1:
                raise ConstructionError(f"cycle detected through {h} -> {c}")
            if st is None:
                stack.append((c, 0))
        else:
            state[h] = 2
    unreachable = [h for h in nodes if h not in state]
    if unreachable:
        names = ", ".join(str(h) for h in unreachable)
        raise ConstructionError(f"scene must have a single root; unreachable nodes: {names}")


class Scene:
    """不変なシーンスナップショット。

    Parameters
    ----------
    root : NodeHandle
    nodes : Mapping[NodeHandle, Node]
    time_range : Interval
        有界でなければならない（全体の評価範囲）。
    timeline : Timeline
    lineage : SceneLineage
    background : color, default 白
    fps : int, default 30
    frame_size : (width, height), default (640, 480)
    """

    __slots__ = (
        "_root",
        "_nodes",
        "_time_range",
        "_timeline",
        "_lineage",
        "_graph",
        "_edits",
        "_background",
        "_fps",
        "_frame_size",
    )

    def __init__(
        self,
        *,
        root: NodeHandle,
        nodes: Mapping[NodeHandle, Node],
        time_range: Interval,
        timeline: Timeline | None = None,
        lineage: SceneLineage | None = None,
        background: Any = (1.0, 1.0, 1.0, 1.0),
        fps: int = 30,
        frame_size: FrameSize = (640, 480),
        graph: DependencyGraph | None = None,
        edits: tuple[EditRecord, ...] = (),
    ) -> None:
        if not time_range.is_bounded:
            raise ConstructionError(f"scene time range must be bounded, got {time_range}")
        if int(fps) < 1:
            raise ConstructionError("fps must be >= 1")
        w, h = frame_size
        if int(w) < 1 or int(h) < 1:
            raise ConstructionError(f"frame size must be positive, got {frame_size}")
        nodes = dict(nodes)
        _validate_structure(root, nodes)
        timeline = timeline if timeline is not None else Timeline()
        for b in timeline:
            if b.handle not in nodes:
                raise ConstructionError(f"binding {b.binding_id} targets missing node {b.handle}")
        self._root = root
        self._nodes = nodes
        self._time_range = time_range
        self._timeline = timeline
        self._lineage = lineage if lineage is not None else SceneLineage()
        self._background = normalize_color(background)
        self._fps = int(fps)
        self._frame_size = (int(w), int(h))
        self._graph = (
            graph
            if graph is not None
            else DependencyGraph.build(root, nodes, timeline, self._lineage.clock)
        )
        self._edits = tuple(edits)

    # ---- 参照 ----
    @property
    def root(self) -> NodeHandle:
        return self._root

    @property
    def nodes(self) -> Mapping[NodeHandle, Node]:
        return dict(self._nodes)

    def node(self, handle: NodeHandle) -> Node:
        try:
            return self._nodes[handle]
        except KeyError:
            raise KeyError(f"node {handle} is not part of this scene") from None

    def __contains__(self, handle: object) -> bool:
        return handle in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def find(self, name: str) -> NodeHandle:
        """名前でハンドルを引く（最初に見つかったもの）。"""
        for h in self._nodes:
            if h.name == name:
                return h
        raise KeyError(f"no node named {name!r}")

    @property
    def time_range(self) -> Interval:
        return self._time_range

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def cache(self) -> EvaluationCache:
        return self._lineage.cache

    @property
    def lineage(self) -> SceneLineage:
        return self._lineage

    @property
    def edits(self) -> tuple[EditRecord, ...]:
        return self._edits

    @property
    def background(self) -> RGBA:
        return self._background

    @property
    def fps(self) -> int:
        return self._fps

    @property
    def frame_size(self) -> FrameSize:
        return self._frame_size

    @property
    def revision(self) -> int:
        """このスナップショットの最新リビジョン（編集が無ければ構築時）。"""
        if self._edits:
            return self._edits[-1].revision
        return max(self._graph.revision(h, k) for h in self._nodes for k in AttributeKind)

    def parents(self, handle: NodeHandle) -> tuple[NodeHandle, ...]:
        return self._graph.parents(handle)

    # ---- 編集（新しいスナップショットを返す） ----
    def _derive(
        self,
        op: str,
        *,
        nodes: Mapping[NodeHandle, Node] | None = None,
        timeline: Timeline | None = None,
        touched: Iterable[Slot] = (),
        moved: Iterable[NodeHandle] = (),
        handle: NodeHandle | None = None,
        binding_id: int | None = None,
        time_range: Interval | None = None,
    ) -> "Scene":
        new_nodes = dict(self._nodes if nodes is None else nodes)
        new_timeline = self._timeline if timeline is None else timeline
        _validate_structure(self._root, new_nodes)
        graph = self._graph.derive(
            self._root,
            new_nodes,
            new_timeline,
            self._lineage.clock,
            touched=touched,
            moved=moved,
        )
        record = EditRecord(self._lineage.clock.next(), op, handle, binding_id)
        logger.debug("[scene] edit op=%s handle=%s revision=%d", op, handle, record.revision)
        return Scene(
            root=self._root,
            nodes=new_nodes,
            time_range=self._time_range if time_range is None else time_range,
            timeline=new_timeline,
            lineage=self._lineage,
            background=self._background,
            fps=self._fps,
            frame_size=self._frame_size,
            graph=graph,
            edits=(*self._edits, record),
        )

    def add_node(
        self,
        drawable: Drawable,
        parent: NodeHandle | None = None,
        *,
        name: str = "",
        required: bool = False,
        visibility: Iterable[Interval] | None = None,
        index: int | None = None,
    ) -> tuple["Scene", NodeHandle]:
        """ノードを追加し `(新スナップショット, ハンドル)` を返す。"""
        parent = self._root if parent is None else parent
        self.node(parent)
        handle = NodeHandle(self._lineage.next_id(), name)
        nodes = dict(self._nodes)
        nodes[handle] = Node(
            handle,
            drawable,
            (),
            bool(required),
            None if visibility is None else tuple(visibility),
        )
        children = list(nodes[parent].children)
        children.insert(len(children) if index is None else index, handle)
        nodes[parent] = nodes[parent].evolve(children=tuple(children))
        scene = self._derive(
            "add_node",
            nodes=nodes,
            touched=[(handle, k) for k in _LOCAL_KINDS],
            moved=[handle],
            handle=handle,
        )
        return scene, handle

    def link(self, parent: NodeHandle, child: NodeHandle) -> "Scene":
        """既存ノードを別の親の子としても参照させる（DAG 共有）。"""
        self.node(child)
        p = self.node(parent)
        if child in p.children:
            raise ConstructionError(f"{child} is already a child of {parent}")
        nodes = dict(self._nodes)
        nodes[parent] = p.evolve(children=(*p.children, child))
        return self._derive("link", nodes=nodes, moved=[child], handle=child)

    def remove_node(self, handle: NodeHandle) -> "Scene":
        """ノードを全ての親から外し、到達不能になったサブツリーとそのバインディングを削除する。"""
        if handle == self._root:
            raise ConstructionError("the root node cannot be removed")
        self.node(handle)
        nodes = {
            h: (n.evolve(children=tuple(c for c in n.children if c != handle)) if handle in n.children else n)
            for h, n in self._nodes.items()
        }
        reachable = descendants([self._root], nodes)
        removed = {h for h in nodes if h not in reachable}
        for h in removed:
            del nodes[h]
            self._lineage.cache.discard(h)
        timeline = self._timeline.without_nodes(removed)
        return self._derive("remove_node", nodes=nodes, timeline=timeline, handle=handle)

    def reparent(self, handle: NodeHandle, new_parent: NodeHandle, *, index: int | None = None) -> "Scene":
        """ノードを現在の全ての親から外し、`new_parent` の子にする。"""
        if handle == self._root:
            raise ConstructionError("the root node cannot be reparented")
        self.node(handle)
        self.node(new_parent)
        if new_parent in descendants([handle], self._nodes):
            raise ConstructionError(f"reparenting {handle} under {new_parent} would create a cycle")
        nodes = {
            h: (n.evolve(children=tuple(c for c in n.children if c != handle)) if handle in n.children else n)
            for h, n in self._nodes.items()
        }
        children = list(nodes[new_parent].children)
        children.insert(len(children) if index is None else index, handle)
        nodes[new_parent] = nodes[new_parent].evolve(children=tuple(children))
        return self._derive("reparent", nodes=nodes, moved=[handle], handle=handle)

    def replace_drawable(self, handle: NodeHandle, drawable: Drawable) -> "Scene":
        node = self.node(handle)
        nodes = dict(self._nodes)
        nodes[handle] = node.evolve(drawable=drawable)
        return self._derive(
            "replace_drawable",
            nodes=nodes,
            touched=[(handle, k) for k in _LOCAL_KINDS],
            handle=handle,
        )

    def set_required(self, handle: NodeHandle, required: bool = True) -> "Scene":
        node = self.node(handle)
        nodes = dict(self._nodes)
        nodes[handle] = node.evolve(required=bool(required))
        return self._derive("set_required", nodes=nodes, handle=handle)

    def set_visibility(self, handle: NodeHandle, visibility: Iterable[Interval] | None) -> "Scene":
        node = self.node(handle)
        nodes = dict(self._nodes)
        nodes[handle] = node.evolve(visibility=None if visibility is None else tuple(visibility))
        return self._derive("set_visibility", nodes=nodes, handle=handle)

    def bind(
        self,
        handle: NodeHandle,
        target: str | AttributeKind,
        animation: Animation,
        *,
        prop: str | None = None,
        start: float = 0.0,
        merge: MergePolicy | str | None = None,
        hold: bool = False,
    ) -> tuple["Scene", int]:
        """Animation を属性へ結びつけ `(新スナップショット, binding_id)` を返す。"""
        self.node(handle)
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
        scene = self._derive(
            "bind",
            timeline=self._timeline.add(binding),
            touched=[(handle, attribute)],
            handle=handle,
            binding_id=binding.binding_id,
        )
        return scene, binding.binding_id

    def unbind(self, binding_id: int) -> "Scene":
        b = self._timeline.get(binding_id)
        return self._derive(
            "unbind",
            timeline=self._timeline.remove(binding_id),
            touched=[(b.handle, b.attribute)],
            handle=b.handle,
            binding_id=binding_id,
        )

    def replace_animation(self, binding_id: int, animation: Animation) -> "Scene":
        b = self._timeline.get(binding_id)
        return self._derive(
            "replace_animation",
            timeline=self._timeline.replace_animation(
                binding_id, animation, self._lineage.clock.next()
            ),
            touched=[(b.handle, b.attribute)],
            handle=b.handle,
            binding_id=binding_id,
        )

    def with_time_range(self, start: float, end: float) -> "Scene":
        if math.isinf(end):
            raise ConstructionError("scene time range must be bounded")
        return self._derive("set_time_range", time_range=Interval(float(start), float(end)))

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"Scene(nodes={len(self._nodes)}, range={self._time_range}, edits={len(self._edits)})"


__all__ = ["Scene", "SceneLineage", "EditRecord"]
