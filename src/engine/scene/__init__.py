"""
どこで: `engine.scene` サブパッケージ。
何を: ノード/タイムライン/依存グラフ/評価キャッシュ/不変シーンとビルダ。
なぜ: シーン記述を検証済みの不変スナップショットへ固め、編集をリビジョンとして追跡するため。
"""

from .builder import SceneBuilder
from .cache import CacheStats, EvaluationCache
from .graph import DependencyGraph, RevisionClock
from .node import AttributeKind, Node, NodeHandle
from .scene import EditRecord, Scene, SceneLineage
from .timeline import Binding, Timeline

__all__ = [
    "AttributeKind",
    "Binding",
    "CacheStats",
    "DependencyGraph",
    "EditRecord",
    "EvaluationCache",
    "Node",
    "NodeHandle",
    "RevisionClock",
    "Scene",
    "SceneBuilder",
    "SceneLineage",
    "Timeline",
]
