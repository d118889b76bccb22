"""
どこで: `engine.evaluate` サブパッケージ。
何を: シーン評価器と評価結果の値型。
"""

from .evaluator import Evaluator, default_visibility
from .state import RenderItem, SceneState

__all__ = ["Evaluator", "RenderItem", "SceneState", "default_visibility"]
