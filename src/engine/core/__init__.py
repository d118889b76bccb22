"""
どこで: `engine.core` サブパッケージ。
何を: 値型（Geometry/Transform/Style/Interval/TimeStamp）、能力インタフェース Drawable、例外階層、診断チャネル。
なぜ: 評価器・スケジューラ・拡張（drawables/animations）が共有する最下層の語彙を一箇所に置くため。
"""

from .diagnostics import DiagnosticEvent, Diagnostics
from .drawable import AnimatedDrawable, Drawable, DrawableBase, StaticDrawable
from .errors import (
    AnimationEngineError,
    ConstructionError,
    DomainError,
    EvaluationError,
    FatalBackendError,
)
from .geometry import Geometry
from .interval import ALWAYS, Interval
from .style import DEFAULT_STYLE, Style
from .timestamp import TimeStamp, frame_times
from .transform import Transform

__all__ = [
    "ALWAYS",
    "AnimatedDrawable",
    "AnimationEngineError",
    "ConstructionError",
    "DEFAULT_STYLE",
    "DiagnosticEvent",
    "Diagnostics",
    "DomainError",
    "Drawable",
    "DrawableBase",
    "EvaluationError",
    "FatalBackendError",
    "Geometry",
    "Interval",
    "StaticDrawable",
    "Style",
    "TimeStamp",
    "Transform",
    "frame_times",
]
