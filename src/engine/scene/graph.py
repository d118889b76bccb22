"""
どこで: `engine.scene.graph`
何を: ノード属性ごとのリビジョンと寄与 Animation を追跡する不変な依存グラフ。
なぜ: キャッシュ値の有効性を「格納時トークン == 現在トークン」の比較だけで判定できるようにするため。

トークン:
- `token(handle, attribute) = (revision, contributors)`。
- `revision` は評価キャッシュが所有する単調増加の `RevisionClock` から払い出す。
  分岐した複数のスナップショットでも同じ値が再利用されないため、ABA が起きない。
- `contributors` は寄与するバインディングのリビジョン（宣言順、Animation の差し替えで更新）。
  ワールド変換は経路上の祖先の変換寄与も含む。

伝播規則（`derive`）:
- TRANSFORM の更新 → 自身と全子孫の WORLD_TRANSFORM を更新。
- 構造編集（追加/付け替え/削除）→ 移動したサブツリーの WORLD_TRANSFORM を更新。
- GEOMETRY / STYLE の更新は自身のみ。
"""

from __future__ import annotations

from typing import Iterable, Mapping

from .cache import RevisionClock
from .node import AttributeKind, Node, NodeHandle
from .timeline import Timeline

Slot = tuple[NodeHandle, AttributeKind]
Token = tuple[int, tuple[int, ...]]

_LOCAL_KINDS = (AttributeKind.GEOMETRY, AttributeKind.TRANSFORM, AttributeKind.STYLE)


def _parents_of(nodes: Mapping[NodeHandle, Node]) -> dict[NodeHandle, tuple[NodeHandle, ...]]:
    parents: dict[NodeHandle, list[NodeHandle]] = {h: [] for h in nodes}
    for h, node in nodes.items():
        for c in node.children:
            parents.setdefault(c, []).append(h)
    return {h: tuple(ps) for h, ps in parents.items()}


def _path_counts(root: NodeHandle, nodes: Mapping[NodeHandle, Node]) -> dict[NodeHandle, int]:
    """根からの経路数（DAG 共有で 2 以上）。"""
    order = _topological(root, nodes)
    counts = {h: 0 for h in order}
    counts[root] = 1
    for h in order:
        for c in nodes[h].children:
            counts[c] = counts.get(c, 0) + counts[h]
    return counts


def _topological(root: NodeHandle, nodes: Mapping[NodeHandle, Node]) -> list[NodeHandle]:
    seen: set[NodeHandle] = set()
    post: list[NodeHandle] = []
    stack: list[tuple[NodeHandle, int]] = [(root, 0)]
    while stack:
        h, i = stack.pop()
        if i == 0:
            if h in seen:
                continue
            seen.add(h)
        children = nodes[h].children
        if i < len(children):
            stack.append((h, i + 1))
            if children[i] not in seen:
                stack.append((children[i], 0))
        else:
            post.append(h)
    post.reverse()
    return post


def descendants(handles: Iterable[NodeHandle], nodes: Mapping[NodeHandle, Node]) -> set[NodeHandle]:
    """`handles` とその全子孫。"""
    out: set[NodeHandle] = set()
    stack = [h for h in handles if h in nodes]
    while stack:
        h = stack.pop()
        if h in out:
            continue
        out.add(h)
        stack.extend(nodes[h].children)
    return out


class DependencyGraph:
    """スナップショットごとに不変な依存グラフ。"""

    __slots__ = ("_revisions", "_contributors", "_parents", "_path_counts")

    def __init__(
        self,
        revisions: Mapping[Slot, int],
        contributors: Mapping[Slot, tuple[int, ...]],
        parents: Mapping[NodeHandle, tuple[NodeHandle, ...]],
        path_counts: Mapping[NodeHandle, int],
    ) -> None:
        self._revisions = dict(revisions)
        self._contributors = dict(contributors)
        self._parents = dict(parents)
        self._path_counts = dict(path_counts)

    # ---- 構築 ----
    @classmethod
    def build(
        cls,
        root: NodeHandle,
        nodes: Mapping[NodeHandle, Node],
        timeline: Timeline,
        clock: RevisionClock,
    ) -> "DependencyGraph":
        rev = clock.next()
        revisions = {(h, k): rev for h in nodes for k in AttributeKind}
        return cls._assemble(root, nodes, timeline, revisions)

    def derive(
        self,
        root: NodeHandle,
        nodes: Mapping[NodeHandle, Node],
        timeline: Timeline,
        clock: RevisionClock,
        *,
        touched: Iterable[Slot] = (),
        moved: Iterable[NodeHandle] = (),
    ) -> "DependencyGraph":
        """編集後のグラフを返す。`touched` と `moved` から推移的に更新スロットを求める。"""
        dirty: set[Slot] = set()
        world_roots: set[NodeHandle] = set(moved)
        for h, kind in touched:
            if h not in nodes:
                continue
            dirty.add((h, kind))
            if kind is AttributeKind.TRANSFORM:
                world_roots.add(h)
        for h in descendants(world_roots, nodes):
            dirty.add((h, AttributeKind.WORLD_TRANSFORM))

        revisions: dict[Slot, int] = {}
        fresh: int | None = None
        for h in nodes:
            for k in AttributeKind:
                slot = (h, k)
                if slot in dirty or slot not in self._revisions:
                    if fresh is None:
                        fresh = clock.next()
                    revisions[slot] = fresh
                else:
                    revisions[slot] = self._revisions[slot]
        return self._assemble(root, nodes, timeline, revisions)

    @classmethod
    def _assemble(
        cls,
        root: NodeHandle,
        nodes: Mapping[NodeHandle, Node],
        timeline: Timeline,
        revisions: Mapping[Slot, int],
    ) -> "DependencyGraph":
        contributors: dict[Slot, tuple[int, ...]] = {}
        for h in nodes:
            for k in _LOCAL_KINDS:
                contributors[(h, k)] = tuple(b.revision for b in timeline.bindings_for(h, k))
        parents = _parents_of(nodes)
        counts = _path_counts(root, nodes)
        # ワールド変換の寄与は根からの（一意な）経路上の変換寄与を連結したもの
        for h in _topological(root, nodes):
            own = contributors[(h, AttributeKind.TRANSFORM)]
            ps = parents.get(h, ())
            if len(ps) == 1:
                contributors[(h, AttributeKind.WORLD_TRANSFORM)] = (
                    contributors[(ps[0], AttributeKind.WORLD_TRANSFORM)] + own
                )
            else:
                contributors[(h, AttributeKind.WORLD_TRANSFORM)] = own
        return cls(revisions, contributors, parents, counts)

    # ---- 参照 ----
    def token(self, handle: NodeHandle, attribute: AttributeKind) -> Token:
        slot = (handle, attribute)
        return (self._revisions[slot], self._contributors.get(slot, ()))

    def revision(self, handle: NodeHandle, attribute: AttributeKind) -> int:
        return self._revisions[(handle, attribute)]

    def contributors(self, handle: NodeHandle, attribute: AttributeKind) -> tuple[int, ...]:
        return self._contributors.get((handle, attribute), ())

    def parents(self, handle: NodeHandle) -> tuple[NodeHandle, ...]:
        return self._parents.get(handle, ())

    def path_count(self, handle: NodeHandle) -> int:
        return self._path_counts.get(handle, 0)

    def has_unique_path(self, handle: NodeHandle) -> bool:
        """根からの経路が 1 本だけか（ワールド変換をキャッシュ可能か）。"""
        return self._path_counts.get(handle, 0) == 1


__all__ = ["DependencyGraph", "RevisionClock", "Slot", "Token", "descendants"]
