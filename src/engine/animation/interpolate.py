"""
どこで: `engine.animation.interpolate`
何を: 値の線形補間 `lerp`、進捗計算 `progress`、ベジェ評価 `bezier_point`（de Casteljau）。
なぜ: 補間可能な値（スカラ/タプル/ndarray/Geometry）を一箇所で扱い、プリミティブ間で規則を揃えるため。

補間規則:
- float/int → float
- tuple/list → 同長の tuple（要素ごと）
- ndarray → 同形状の ndarray
- Geometry → `offsets` が一致する場合のみ頂点ごとに補間（異なれば ValueError）
"""

from __future__ import annotations

from numbers import Real
from typing import Any, Sequence

import numpy as np

from engine.core.geometry import Geometry


def progress(t: float, start: float, end: float) -> float:
    """`[start, end]` 内の `t` を 0..1 へ写す（`start == end` は 1.0）。"""
    if end == start:
        return 1.0
    u = (t - start) / (end - start)
    return 0.0 if u < 0.0 else 1.0 if u > 1.0 else u


def lerp(a: Any, b: Any, u: float) -> Any:
    """`a` から `b` へ割合 `u` で補間する（`u=0` で a、`u=1` で b そのもの）。"""
    if u == 0.0:
        return a
    if u == 1.0:
        return b
    if isinstance(a, Real) and isinstance(b, Real):
        return float(a) + (float(b) - float(a)) * u
    if isinstance(a, Geometry) and isinstance(b, Geometry):
        if not np.array_equal(a.offsets, b.offsets):
            raise ValueError("cannot interpolate geometries with different topology")
        ca = a.coords.astype(np.float64)
        cb = b.coords.astype(np.float64)
        return Geometry(ca + (cb - ca) * u, a.offsets.copy())
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        aa = np.asarray(a, dtype=np.float64)
        bb = np.asarray(b, dtype=np.float64)
        if aa.shape != bb.shape:
            raise ValueError(f"shape mismatch in lerp: {aa.shape} vs {bb.shape}")
        return aa + (bb - aa) * u
    if isinstance(a, (tuple, list)) and isinstance(b, (tuple, list)):
        if len(a) != len(b):
            raise ValueError(f"length mismatch in lerp: {len(a)} vs {len(b)}")
        return tuple(lerp(x, y, u) for x, y in zip(a, b))
    raise TypeError(f"values of type {type(a).__name__} and {type(b).__name__} are not interpolatable")


def bezier_point(points: Sequence[Any], u: float) -> Any:
    """制御点列のベジェ曲線を de Casteljau 法で評価する。"""
    if not points:
        raise ValueError("bezier requires at least one control point")
    work = list(points)
    n = len(work)
    for level in range(1, n):
        for i in range(n - level):
            work[i] = lerp(work[i], work[i + 1], u)
    return work[0]


def is_interpolatable(value: Any) -> bool:
    return isinstance(value, (Real, Geometry, np.ndarray, tuple, list))


__all__ = ["progress", "lerp", "bezier_point", "is_interpolatable"]
