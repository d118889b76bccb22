"""
どこで: `animations` パッケージ。
何を: Animation ファクトリ/イージングのレジストリと組み込み実装（基本 Animation・oscillator・イージング）。
なぜ: 名前付きの拡張ポイントとして、コアを変更せずに時間変化を追加できるようにするため。
"""

# 組み込みを import して登録（副作用）
from . import builtin as _register_builtin  # noqa: F401
from . import easings as _register_easings  # noqa: F401
from . import oscillator as _register_oscillator  # noqa: F401
from .oscillator import WAVES, Oscillator
from .registry import (
    animation,
    create_animation,
    easing,
    get_animation,
    get_easing,
    is_animation_registered,
    is_easing_registered,
    list_animations,
    list_easings,
    resolve_easing,
)

__all__ = [
    "Oscillator",
    "WAVES",
    "animation",
    "easing",
    "get_animation",
    "create_animation",
    "list_animations",
    "is_animation_registered",
    "get_easing",
    "resolve_easing",
    "list_easings",
    "is_easing_registered",
]
