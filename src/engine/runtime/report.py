"""
どこで: `engine.runtime.report`
何を: ジョブ結果 `JobReport`（成功/失敗/キャンセル/致命エラー/キャッシュ統計）とサンプル単位の失敗値。
なぜ: 失敗をワーカ境界越しに送出せず値として集約し、失敗サンプルだけを再描画できるようにするため。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True, slots=True)
class SampleId:
    index: int
    t: float


@dataclass(frozen=True, slots=True)
class SampleFailure:
    """1 サンプルの失敗（`error` は EvaluationError / DomainError 等）。"""

    index: int
    t: float
    error: BaseException
    stage: str = "evaluate"

    def __str__(self) -> str:
        return f"sample {self.index} (t={self.t:g}) failed at {self.stage}: {self.error}"


@dataclass(frozen=True)
class JobReport:
    succeeded: tuple[SampleId, ...] = ()
    failed: tuple[SampleFailure, ...] = ()
    cancelled: tuple[SampleId, ...] = ()
    fatal: BaseException | None = None
    cache_stats: Mapping[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.fatal is None and not self.failed and not self.cancelled

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed) + len(self.cancelled)

    def failed_times(self) -> list[float]:
        """失敗サンプルの時刻（要求順）。再描画要求にそのまま渡せる。"""
        return [f.t for f in sorted(self.failed, key=lambda f: f.index)]

    def succeeded_times(self) -> list[float]:
        return [s.t for s in sorted(self.succeeded, key=lambda s: (s.t, s.index))]


__all__ = ["SampleId", "SampleFailure", "JobReport"]
