"""
どこで: `api` 入口（高レベル公開 API）。
何を: 描画物 `D`・Animation `A`・`SceneBuilder`・`render` と拡張用デコレータを再輸出。
なぜ: 利用者が単一名前空間からシーン構築→時間評価→描画まで完結できるようにするため。

Usage:
    from api import A, D, SceneBuilder, render

    sb = SceneBuilder(duration=2.0, fps=24, frame_size=(200, 200))
    hexagon = sb.add(D.polygon(n_sides=6, radius=40), name="hex")
    sb.animate(hexagon, "translate", A.linear((0, 0), (100, 100), 2.0, "ease_in_out"))
    result = render(sb.build())
"""

from animations.registry import animation as animation  # 公開唯一経路（api.animation）
from animations.registry import easing as easing
from drawables.registry import drawable as drawable  # 公開唯一経路（api.drawable）

# コアクラス（高度な使用）
from engine.core.diagnostics import Diagnostics
from engine.core.geometry import Geometry
from engine.core.interval import Interval
from engine.core.style import Style
from engine.core.transform import Transform
from engine.runtime.collector import InMemoryCollector
from engine.scene.builder import SceneBuilder

# 主要API
from .animations import A, AnimationsAPI
from .drawables import D, DrawablesAPI
from .render import RenderResult, render

__all__ = [
    # メインAPI
    "D",  # 描画物ファクトリ
    "A",  # Animation ファクトリ＋合成子
    "SceneBuilder",
    "render",
    "RenderResult",
    "drawable",  # ユーザー拡張用デコレータ
    "animation",  # ユーザー拡張用デコレータ
    "easing",  # ユーザー拡張用デコレータ
    # クラス（高度な使用）
    "AnimationsAPI",
    "DrawablesAPI",
    "Diagnostics",
    "Geometry",
    "InMemoryCollector",
    "Interval",
    "Style",
    "Transform",
]

# バージョン情報
__version__ = "2026.10"
__api_version__ = "1.0"
