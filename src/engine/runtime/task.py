"""
どこで: `engine.runtime` のタスク定義。
何を: ワーカへ渡す 1 サンプルぶんの `SampleTask`（要求内の位置と時刻）と、要求列の正規化。
なぜ: 実行キューの型を固定し、非単調な要求（スクラブ/部分再描画）でも識別子を安定させるため。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable


@dataclass(slots=True, frozen=True)
class SampleTask:
    """スケジューラ → ワーカへ送る評価/描画タスク。"""

    index: int  # 要求列内の位置（サンプル ID）
    t: float

    @property
    def order_key(self) -> tuple[float, int]:
        """出力順序のキー（時刻昇順、同時刻は要求順）。"""
        return (self.t, self.index)


def make_tasks(samples: Iterable[float]) -> list[SampleTask]:
    """時刻列を `SampleTask` 列へ変換する（NaN/inf は ValueError）。"""
    tasks: list[SampleTask] = []
    for i, t in enumerate(samples):
        tf = float(t)
        if not math.isfinite(tf):
            raise ValueError(f"sample {i} has a non-finite time {t!r}")
        tasks.append(SampleTask(i, tf))
    return tasks


__all__ = ["SampleTask", "make_tasks"]
