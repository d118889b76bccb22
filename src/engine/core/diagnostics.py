"""
どこで: `engine.core.diagnostics`
何を: 構造化診断イベント（構築/時刻域外/評価/バックエンド失敗、キャッシュ統計）の受け口。
なぜ: 評価を止めない「ソフトな失敗」を値として記録し、外部のロギング/テレメトリへ流すため。

使い方:
    diag = Diagnostics()
    diag.subscribe(lambda ev: print(ev.kind, ev.message))
    evaluator = Evaluator(diagnostics=diag)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)

CONSTRUCTION_ERROR = "construction_error"
DOMAIN_ERROR = "domain_error"
EVALUATION_ERROR = "evaluation_error"
BACKEND_ERROR = "backend_error"
CACHE_STATS = "cache_stats"

_LEVELS = {
    CONSTRUCTION_ERROR: logging.WARNING,
    DOMAIN_ERROR: logging.DEBUG,
    EVALUATION_ERROR: logging.WARNING,
    BACKEND_ERROR: logging.ERROR,
    CACHE_STATS: logging.DEBUG,
}


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    kind: str
    message: str
    t: float | None = None
    handle: Any = None
    data: Mapping[str, Any] = field(default_factory=dict)


class Diagnostics:
    """スレッド安全な診断イベントのシンク。

    - `emit` は記録・購読者通知・ロギングを行う。
    - 購読者の例外はログに残して握りつぶさず、次の購読者へ進む（評価は継続）。
    """

    def __init__(self, *, keep: bool = True) -> None:
        self._keep = keep
        self._events: list[DiagnosticEvent] = []
        self._subscribers: list[Callable[[DiagnosticEvent], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[DiagnosticEvent], None]) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def emit(
        self,
        kind: str,
        message: str,
        *,
        t: float | None = None,
        handle: Any = None,
        **data: Any,
    ) -> DiagnosticEvent:
        ev = DiagnosticEvent(kind=kind, message=message, t=t, handle=handle, data=dict(data))
        with self._lock:
            if self._keep:
                self._events.append(ev)
            subscribers = list(self._subscribers)
        logger.log(_LEVELS.get(kind, logging.INFO), "[diag] kind=%s t=%s %s", kind, t, message)
        for cb in subscribers:
            try:
                cb(ev)
            except Exception:
                logger.exception("[diag] subscriber failed kind=%s", kind)
        return ev

    def events(self, kind: str | None = None) -> list[DiagnosticEvent]:
        with self._lock:
            if kind is None:
                return list(self._events)
            return [e for e in self._events if e.kind == kind]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


__all__ = [
    "DiagnosticEvent",
    "Diagnostics",
    "CONSTRUCTION_ERROR",
    "DOMAIN_ERROR",
    "EVALUATION_ERROR",
    "BACKEND_ERROR",
    "CACHE_STATS",
]
