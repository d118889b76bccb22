"""
どこで: `engine.core.errors`
何を: エンジン全体の例外階層（構築時/時刻域外/サンプル単位の評価失敗/バックエンド致命）。
なぜ: 失敗の粒度（ジョブ全体・1 サンプル・1 ノード）を型で区別し、スケジューラが値として集約できるようにするため。

すべての例外は単一メッセージ引数で再構築できる（ピクル化/ワーカ境界越えに耐える）。
"""

from __future__ import annotations

from typing import Any


class AnimationEngineError(Exception):
    """エンジン例外の基底。"""

    def __reduce__(self):
        # 付帯属性は落としてメッセージのみで復元する
        return (type(self), (str(self),))


class ConstructionError(AnimationEngineError):
    """Animation/Scene/Timeline の合成が不正（構築時に検出）。"""


class DomainError(AnimationEngineError):
    """時刻が有効区間の外にある。

    `interval` と `t` を保持し、メッセージは区間を明示する。
    """

    def __init__(self, message: str | None = None, *, interval: Any = None, t: float | None = None):
        if message is None:
            message = f"time {t!r} is outside the valid interval {interval}"
        super().__init__(message)
        self.interval = interval
        self.t = t


class EvaluationError(AnimationEngineError):
    """1 サンプルに致命的な評価失敗（required ノードの失敗やレンダ投入の失敗）。"""

    def __init__(
        self,
        message: str | None = None,
        *,
        t: float | None = None,
        handle: Any = None,
        cause: BaseException | None = None,
    ) -> None:
        if message is None:
            where = f" at node {handle}" if handle is not None else ""
            message = f"evaluation failed{where} (t={t!r}): {cause!r}"
        super().__init__(message)
        self.t = t
        self.handle = handle
        self.cause = cause


class FatalBackendError(AnimationEngineError):
    """レンダラ/デバイス水準の失敗。ジョブ全体を中断させる。"""


__all__ = [
    "AnimationEngineError",
    "ConstructionError",
    "DomainError",
    "EvaluationError",
    "FatalBackendError",
]
