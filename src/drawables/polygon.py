from __future__ import annotations

from typing import Any

import numpy as np

from engine.core.drawable import AnimatedDrawable
from engine.core.geometry import Geometry

from .registry import drawable

MIN_SIDES = 3
MAX_SIDES = 120


def _polygon_vertices(n_sides: int, radius: float, phase: float) -> np.ndarray:
    """正多角形の頂点配列を生成します（最初の頂点を末尾に複製して閉ループ化）。"""
    theta0 = float(phase) * np.pi / 180.0
    t = np.linspace(0, 2 * np.pi, n_sides, endpoint=False) + theta0
    x = np.cos(t) * radius
    y = np.sin(t) * radius
    z = np.zeros_like(x)
    vertices = np.stack([x, y, z], axis=1).astype(np.float32)
    return np.append(vertices, vertices[0:1], axis=0)


@drawable
def polygon(
    n_sides: int | float = 6,
    *,
    radius: float = 0.5,
    phase: float = 0.0,
    **attrs: Any,
) -> AnimatedDrawable:
    """原点中心・半径 `radius` の円に内接する正多角形。

    引数:
        n_sides: 辺の数（3..120 に丸め込み）。
        radius: 外接円の半径。
        phase: 頂点開始角（度数法）。0 で +X 軸上に頂点を置く。
        **attrs: `AnimatedDrawable` の属性（translate/rotate/scale/color/thickness/opacity/validity）。
    """
    sides = int(round(float(n_sides)))
    sides = max(MIN_SIDES, min(MAX_SIDES, sides))
    geom = Geometry.from_lines([_polygon_vertices(sides, float(radius), float(phase))])
    return AnimatedDrawable(geom, **attrs)


polygon.__param_meta__ = {
    "n_sides": {"type": "integer", "min": 3, "max": 120, "step": 1},
    "radius": {"type": "number", "min": 0.0},
    "phase": {"type": "number", "min": 0.0, "max": 360.0, "step": 1.0},
}
