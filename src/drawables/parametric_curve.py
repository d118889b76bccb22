from __future__ import annotations

from typing import Any, Callable

import numpy as np

from engine.core.drawable import AnimatedDrawable
from engine.core.geometry import Geometry

from .registry import drawable


def _sample_curve(
    fn: Callable[..., Any], u0: float, u1: float, samples: int, t: float | None
) -> Geometry:
    us = np.linspace(u0, u1, samples)
    pts = [fn(u) if t is None else fn(u, t) for u in us]
    return Geometry.from_lines([np.asarray(pts, dtype=np.float32)])


@drawable
def parametric_curve(
    fn: Callable[..., Any],
    *,
    u_range: tuple[float, float] = (0.0, 1.0),
    samples: int = 128,
    time_dependent: bool = False,
    **attrs: Any,
) -> AnimatedDrawable:
    """媒介変数曲線 `u -> (x, y[, z])` を `samples` 点でサンプリングしたポリライン。

    `time_dependent=True` のとき `fn(u, t)` として時刻ごとに形状を作り直す。
    """
    n = int(samples)
    if n < 2:
        raise ValueError("samples は 2 以上が必要です")
    u0, u1 = (float(v) for v in u_range)
    if time_dependent:
        geometry: Any = lambda t: _sample_curve(fn, u0, u1, n, t)  # noqa: E731
    else:
        geometry = _sample_curve(fn, u0, u1, n, None)
    return AnimatedDrawable(geometry, **attrs)


parametric_curve.__param_meta__ = {
    "samples": {"type": "integer", "min": 2, "max": 4096, "step": 1},
}
