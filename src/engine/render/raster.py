"""
どこで: `engine.render.raster`
何を: numpy/numba による参照ラスタライザ `RasterRenderer`（ポリライン → RGBA8 バッファ）。
なぜ: GPU バックエンドを持たない環境（テスト・バッチ書き出し）でも Renderer 契約を満たす実装を持つため。

座標系:
- ワールド座標の x, y をそのままピクセル座標とする（原点は左上、y は下向き）。z は無視。
- 線幅 `Style.thickness` [px] は正方スタンプで近似する。
- 合成は straight alpha の "over"。出力は `(H, W, 4) uint8`。
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numba import njit  # type: ignore[attr-defined]

from common.types import FrameSize
from engine.core.geometry import Geometry
from engine.core.style import Style
from engine.core.transform import Transform
from util.color import normalize_color


@njit(cache=True)
def _stamp(canvas: np.ndarray, x: int, y: int, r: int, rgba: np.ndarray) -> None:
    h = canvas.shape[0]
    w = canvas.shape[1]
    a = rgba[3]
    for yy in range(y - r, y + r + 1):
        if yy < 0 or yy >= h:
            continue
        for xx in range(x - r, x + r + 1):
            if xx < 0 or xx >= w:
                continue
            for c in range(3):
                canvas[yy, xx, c] = rgba[c] * a + canvas[yy, xx, c] * (1.0 - a)
            canvas[yy, xx, 3] = a + canvas[yy, xx, 3] * (1.0 - a)


@njit(cache=True)
def _draw_polylines(
    canvas: np.ndarray,
    coords: np.ndarray,
    offsets: np.ndarray,
    rgba: np.ndarray,
    radius: int,
) -> None:
    """ポリライン群を DDA で描く（各線は offsets で区切られる）。"""
    for li in range(offsets.shape[0] - 1):
        s = offsets[li]
        e = offsets[li + 1]
        if e - s == 1:
            _stamp(canvas, int(np.floor(coords[s, 0])), int(np.floor(coords[s, 1])), radius, rgba)
            continue
        for i in range(s, e - 1):
            x0 = coords[i, 0]
            y0 = coords[i, 1]
            x1 = coords[i + 1, 0]
            y1 = coords[i + 1, 1]
            steps = int(max(abs(x1 - x0), abs(y1 - y0))) + 1
            for k in range(steps + 1):
                u = k / steps
                _stamp(
                    canvas,
                    int(np.floor(x0 + (x1 - x0) * u)),
                    int(np.floor(y0 + (y1 - y0) * u)),
                    radius,
                    rgba,
                )


class RasterRenderer:
    """スレッド安全な CPU ラスタライザ（状態を持たない）。

    Parameters
    ----------
    background : color, default 白
        背景色（Hex / RGB(A) 0–1 / 0–255）。
    """

    thread_safe = True

    def __init__(self, background: Any = (1.0, 1.0, 1.0, 1.0)) -> None:
        self._background = np.asarray(normalize_color(background), dtype=np.float32)

    def render(
        self,
        geometries: Sequence[Geometry],
        transforms: Sequence[Transform],
        styles: Sequence[Style],
        frame_size: FrameSize,
    ) -> np.ndarray:
        if not (len(geometries) == len(transforms) == len(styles)):
            raise ValueError("geometries, transforms and styles must have the same length")
        width, height = int(frame_size[0]), int(frame_size[1])
        canvas = np.empty((height, width, 4), dtype=np.float32)
        canvas[:, :] = self._background
        for g, xf, st in zip(geometries, transforms, styles):
            if g.is_empty:
                continue
            world = xf.apply_points(g.coords)
            rgba = np.asarray(st.effective_rgba, dtype=np.float32)
            if rgba[3] <= 0.0:
                continue
            radius = max(0, int(round((st.thickness - 1.0) / 2.0)))
            _draw_polylines(
                canvas,
                np.ascontiguousarray(world[:, :2]),
                np.asarray(g.offsets, dtype=np.int64),
                rgba,
                radius,
            )
        return np.clip(np.rint(canvas * 255.0), 0, 255).astype(np.uint8)


__all__ = ["RasterRenderer"]
