"""
どこで: `engine.animation` サブパッケージ。
何を: Animation 基底・プリミティブ・合成子・マージ方針・補間ヘルパ。
なぜ: 時間変化を純関数の代数として記述し、構築時に不整合を検出するため。
"""

from .base import Animation
from .combinators import ease, loop, parallel, reverse, sequence, shift
from .interpolate import bezier_point, lerp, progress
from .merge import MergePolicy, blend
from .primitives import Bezier, Constant, Keyframes, Linear, Parametric

__all__ = [
    "Animation",
    "Bezier",
    "Constant",
    "Keyframes",
    "Linear",
    "MergePolicy",
    "Parametric",
    "bezier_point",
    "blend",
    "ease",
    "lerp",
    "loop",
    "parallel",
    "progress",
    "reverse",
    "sequence",
    "shift",
]
