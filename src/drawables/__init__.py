"""
どこで: `drawables` パッケージ。
何を: Drawable ファクトリのレジストリと組み込み描画物（polygon/polyline/parametric_curve）。
なぜ: 名前付きの拡張ポイントとして、コアを変更せずに描画物を追加できるようにするため。
"""

# 組み込み drawable を import して登録（副作用）
from . import parametric_curve as _register_parametric_curve  # noqa: F401
from . import polygon as _register_polygon  # noqa: F401
from . import polyline as _register_polyline  # noqa: F401
from .registry import (
    clear_registry,
    create_drawable,
    drawable,
    get_drawable,
    get_registry,
    is_drawable_registered,
    list_drawables,
    unregister,
)

__all__ = [
    "drawable",
    "get_drawable",
    "create_drawable",
    "list_drawables",
    "is_drawable_registered",
    "clear_registry",
    "unregister",
    "get_registry",
]
