"""
どこで: `api.render`（オフライン描画の高レベル入口）。
何を: シーンと時刻サンプル列から `FrameScheduler` を組み立てて実行し、レポートとフレームを返す。
なぜ: スケジューラ/レンダラ/コレクタの配線と既定値（YAML `render:` → 環境設定）を一箇所に集約するため。

既定値の優先順:
1) 引数
2) `configs/default.yaml` / `config.yaml` の `render:` セクション（`workers`, `max_in_flight`）
3) `common.settings`（`PXA_SCHEDULER_WORKERS` 等）
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from common.logging import setup_default_logging
from engine.core.diagnostics import Diagnostics
from engine.core.interval import Interval
from engine.render.raster import RasterRenderer
from engine.render.types import Renderer
from engine.runtime.collector import InMemoryCollector, OutputCollector
from engine.runtime.frame import Frame
from engine.runtime.report import JobReport
from engine.runtime.scheduler import FrameScheduler
from engine.scene.scene import Scene
from util.utils import load_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    report: JobReport
    frames: list[Frame] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.report.ok


def _render_section() -> dict[str, Any]:
    section = load_config().get("render", {})
    if not isinstance(section, dict):
        logger.warning("config 'render' section is not a mapping; ignored")
        return {}
    return section


def _opt_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("config render.%s=%r is not an integer; ignored", key, value)
        return None


def render(
    scene: Scene,
    samples: Iterable[float] | Interval | None = None,
    renderer: Renderer | None = None,
    *,
    collector: OutputCollector | None = None,
    num_workers: int | None = None,
    max_in_flight: int | None = None,
    diagnostics: Diagnostics | None = None,
    timeout: float | None = None,
) -> RenderResult:
    """シーンを描画してレポートを返す。

    引数:
        scene: 描画するシーン。
        samples: 時刻列か Interval。None はシーンの `time_range` 全体を fps で刻む。
        renderer: 省略時はシーン背景色の `RasterRenderer`。
        collector: 省略時は `InMemoryCollector` に集め、`RenderResult.frames` として返す。
    """
    setup_default_logging()
    cfg = _render_section()
    workers = num_workers if num_workers is not None else _opt_int(cfg.get("workers"), "workers")
    in_flight = (
        max_in_flight
        if max_in_flight is not None
        else _opt_int(cfg.get("max_in_flight"), "max_in_flight")
    )
    if renderer is None:
        renderer = RasterRenderer(background=scene.background)
    sink = collector if collector is not None else InMemoryCollector()
    with FrameScheduler(
        renderer,
        evaluator=None,
        num_workers=workers,
        max_in_flight=in_flight,
        diagnostics=diagnostics,
    ) as scheduler:
        report = scheduler.render(
            scene,
            scene.time_range if samples is None else samples,
            sink,
            timeout=timeout,
        )
    frames = sink.frames if isinstance(sink, InMemoryCollector) and collector is None else []
    return RenderResult(report=report, frames=frames)


__all__ = ["render", "RenderResult"]
