"""
どこで: `engine.evaluate.evaluator`
何を: `(Scene スナップショット, t)` → `SceneState` の純粋な評価器。
なぜ: 可視ノードを前順序で平坦化し、祖先変換の積でワールド変換を求め、キャッシュを透過的に使うため。

評価規則:
- 走査は根からの前順序、子は宣言順。可視性述語が False のノードはサブツリーごと除外。
- ノードの属性（Geometry/Transform/Style）はキャッシュ経由で求める（`scene.cache`）。
- ワールド変換は根からの経路が一意で、経路上の全ノードが有効なときだけキャッシュする
  （DAG 共有ノードは経路依存のため毎回計算）。
- 生成側の DomainError:
    - required でないノード → 無効マーカー（空ジオメトリ・恒等ローカル変換・既定スタイル、`valid=False`）
      に置き換え、`domain_error` 診断を記録して続行。
    - required ノード → そのサンプルに致命的な `EvaluationError`。
- その他の例外 → `EvaluationError`（ノードとサンプル時刻つき）。
- キャッシュの有無・ワーカ数によらず結果は同一。
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from common.settings import get as _get_settings
from engine.core.diagnostics import DOMAIN_ERROR, DiagnosticEvent, Diagnostics
from engine.core.errors import DomainError, EvaluationError
from engine.core.geometry import Geometry
from engine.core.style import DEFAULT_STYLE
from engine.core.transform import Transform
from engine.scene.node import AttributeKind, Node, NodeHandle
from engine.scene.scene import Scene

from .attributes import resolve_geometry, resolve_style, resolve_transform
from .state import RenderItem, SceneState

logger = logging.getLogger(__name__)

VisibilityPredicate = Callable[[Node, float], bool]

_RESOLVERS = {
    AttributeKind.GEOMETRY: resolve_geometry,
    AttributeKind.TRANSFORM: resolve_transform,
    AttributeKind.STYLE: resolve_style,
}


def default_visibility(node: Node, t: float) -> bool:
    """ノードの可視区間に基づく既定の可視性。"""
    return node.is_visible_at(t)


class Evaluator:
    """シーン評価器（状態を持たない。キャッシュはシーン系譜が所有）。

    Parameters
    ----------
    visible : Callable[[Node, float], bool], optional
        可視性述語。既定はノードの可視区間。
    diagnostics : Diagnostics, optional
        ソフト診断の送り先。`SceneState.diagnostics` には常に記録される。
    use_cache : bool, optional
        None は設定値 `PXA_CACHE_ENABLED` に従う。
    """

    def __init__(
        self,
        visible: VisibilityPredicate | None = None,
        diagnostics: Diagnostics | None = None,
        use_cache: bool | None = None,
    ) -> None:
        self._visible = visible if visible is not None else default_visibility
        self._diagnostics = diagnostics
        self._use_cache = _get_settings().CACHE_ENABLED if use_cache is None else bool(use_cache)

    @property
    def diagnostics(self) -> Diagnostics | None:
        return self._diagnostics

    # ---- 属性評価 ----
    def _local(self, scene: Scene, node: Node, kind: AttributeKind, t: float) -> Any:
        resolver = _RESOLVERS[kind]
        bindings = scene.timeline.bindings_for(node.handle, kind)
        if not self._use_cache:
            return resolver(node, bindings, t)
        token = scene.graph.token(node.handle, kind)
        return scene.cache.get_or_compute(
            node.handle, kind, t, token, lambda: resolver(node, bindings, t)
        )

    def evaluate_with_cache(
        self, scene: Scene, handle: NodeHandle, attribute: AttributeKind | str, t: float
    ) -> Any:
        """単一ノード属性の値（トークンが一致する格納値があればそれを返す）。"""
        kind = AttributeKind(attribute)
        t = scene.time_range.check(float(t))
        node = scene.node(handle)
        if kind is not AttributeKind.WORLD_TRANSFORM:
            return self._local(scene, node, kind, t)
        if not scene.graph.has_unique_path(handle):
            raise ValueError(f"world transform of shared node {handle} depends on the path")
        path = [handle]
        while path[-1] != scene.root:
            path.append(scene.graph.parents(path[-1])[0])
        world = Transform.identity()
        for h in reversed(path):
            world = self._world(scene, scene.node(h), world, t, cacheable=True)
        return world

    def _world(
        self, scene: Scene, node: Node, parent_world: Transform, t: float, *, cacheable: bool
    ) -> Transform:
        local = self._local(scene, node, AttributeKind.TRANSFORM, t)
        if not (cacheable and self._use_cache):
            return parent_world.compose(local)
        token = scene.graph.token(node.handle, AttributeKind.WORLD_TRANSFORM)
        return scene.cache.get_or_compute(
            node.handle,
            AttributeKind.WORLD_TRANSFORM,
            t,
            token,
            lambda: parent_world.compose(local),
        )

    # ---- シーン評価 ----
    def evaluate(self, scene: Scene, t: float) -> SceneState:
        """時刻 `t` のシーン状態。`t` がシーン範囲外なら `DomainError`。"""
        t = scene.time_range.check(float(t))
        items: list[RenderItem] = []
        diags: list[DiagnosticEvent] = []
        graph = scene.graph

        # (handle, path, parent_world, cacheable)
        stack: list[tuple[NodeHandle, tuple[NodeHandle, ...], Transform, bool]] = [
            (scene.root, (), Transform.identity(), True)
        ]
        while stack:
            handle, parent_path, parent_world, parent_cacheable = stack.pop()
            node = scene.node(handle)
            if not self._visible(node, t):
                continue
            path = (*parent_path, handle)
            cacheable = parent_cacheable and graph.has_unique_path(handle)
            try:
                geometry = self._local(scene, node, AttributeKind.GEOMETRY, t)
                style = self._local(scene, node, AttributeKind.STYLE, t)
                world = self._world(scene, node, parent_world, t, cacheable=cacheable)
                valid = True
            except DomainError as e:
                if node.required:
                    raise EvaluationError(t=t, handle=handle, cause=e) from e
                diags.append(self._soft_domain_error(e, t, handle))
                geometry = Geometry.empty()
                style = DEFAULT_STYLE
                world = parent_world
                valid = False
                cacheable = False
            except EvaluationError:
                raise
            except Exception as e:
                raise EvaluationError(t=t, handle=handle, cause=e) from e

            items.append(RenderItem(handle, path, world, geometry, style, valid))
            for child in reversed(node.children):
                stack.append((child, path, world, cacheable))

        return SceneState(t, tuple(items), tuple(diags))

    def _soft_domain_error(self, e: DomainError, t: float, handle: NodeHandle) -> DiagnosticEvent:
        data = {"interval": str(e.interval) if e.interval is not None else None}
        if self._diagnostics is not None:
            return self._diagnostics.emit(DOMAIN_ERROR, str(e), t=t, handle=handle, **data)
        logger.debug("[evaluate] invalid marker node=%s t=%s: %s", handle, t, e)
        return DiagnosticEvent(DOMAIN_ERROR, str(e), t, handle, data)


__all__ = ["Evaluator", "default_visibility", "VisibilityPredicate"]
