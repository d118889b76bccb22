"""
どこで: `engine.runtime.collector`
何を: 出力先の契約 `OutputCollector` と、メモリ上に蓄えるだけの `InMemoryCollector`。
なぜ: 動画エンコーダ/連番書き出し等の外部実装を、時刻昇順で Frame を受け取る能力だけで扱うため。
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from .frame import Frame


@runtime_checkable
class OutputCollector(Protocol):
    """Frame を時刻昇順で受け取る出力先。

    `close()` は正常終了時、`abort(exc)` は致命エラー時に 1 回だけ呼ばれる（いずれも任意実装）。
    """

    def accept(self, frame: Frame) -> None: ...


class InMemoryCollector:
    """受け取った Frame をリストに保持する。"""

    def __init__(self) -> None:
        self._frames: list[Frame] = []
        self._lock = threading.Lock()
        self.closed = False
        self.aborted: BaseException | None = None

    def accept(self, frame: Frame) -> None:
        with self._lock:
            self._frames.append(frame)

    def close(self) -> None:
        self.closed = True

    def abort(self, exc: BaseException) -> None:
        self.aborted = exc

    @property
    def frames(self) -> list[Frame]:
        with self._lock:
            return list(self._frames)

    @property
    def times(self) -> list[float]:
        return [f.t for f in self.frames]

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)


__all__ = ["OutputCollector", "InMemoryCollector"]
