from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from engine.core.drawable import AnimatedDrawable
from engine.core.geometry import Geometry

from .registry import drawable


@drawable
def polyline(points: Sequence[Sequence[float]], *, closed: bool = False, **attrs: Any) -> AnimatedDrawable:
    """点列をそのまま 1 本のポリラインにする。

    引数:
        points: `(K, 2)` または `(K, 3)` の座標列（K >= 2）。
        closed: True で始点を末尾に複製して閉じる。
        **attrs: `AnimatedDrawable` の属性。
    """
    arr = np.asarray(points, dtype=np.float32)
    if arr.ndim != 2 or arr.shape[0] < 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"polyline には (K>=2, 2|3) の点列が必要です: got shape {arr.shape}")
    if closed:
        arr = np.concatenate([arr, arr[:1]], axis=0)
    return AnimatedDrawable(Geometry.from_lines([arr]), **attrs)
