"""
どこで: `engine.core.transform`
何を: 不変な 4x4 アフィン変換 `Transform`（TRS 合成・関数合成・Geometry への適用）。
なぜ: ノードのローカル変換を値として扱い、祖先の積でワールド変換を純粋に求めるため。

規約:
- 行列は列ベクトル規約（`p' = M @ p`）。`parent.compose(child)` は `parent.M @ child.M`。
- `from_trs` は `T · Rz · Ry · Rx · S`（スケール → X→Y→Z 回転 → 平行移動、角度はラジアン）。
- 頂点への適用は numba カーネルで一括処理する。
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numba import njit  # type: ignore[attr-defined]

from .geometry import Geometry


@njit(fastmath=True, cache=True)
def _apply_matrix(vertices: np.ndarray, m: np.ndarray) -> np.ndarray:
    """(N,3) 頂点に 4x4 行列を適用する。"""
    n = vertices.shape[0]
    out = np.empty((n, 3), dtype=np.float64)
    for i in range(n):
        x = vertices[i, 0]
        y = vertices[i, 1]
        z = vertices[i, 2]
        out[i, 0] = m[0, 0] * x + m[0, 1] * y + m[0, 2] * z + m[0, 3]
        out[i, 1] = m[1, 0] * x + m[1, 1] * y + m[1, 2] * z + m[1, 3]
        out[i, 2] = m[2, 0] * x + m[2, 1] * y + m[2, 2] * z + m[2, 3]
    return out


def _as_vec3(value: float | Sequence[float], name: str) -> tuple[float, float, float]:
    if isinstance(value, (int, float)):
        v = float(value)
        return (v, v, v)
    seq = tuple(float(x) for x in value)
    if len(seq) == 2:
        return (seq[0], seq[1], 1.0 if name == "scale" else 0.0)
    if len(seq) != 3:
        raise ValueError(f"{name} must have 2 or 3 components, got {len(seq)}")
    return (seq[0], seq[1], seq[2])


def _rotation_xyz(rx: float, ry: float, rz: float) -> np.ndarray:
    """`Rz · Ry · Rx` の 3x3 回転行列。"""
    sx, sy, sz = np.sin([rx, ry, rz])
    cx, cy, cz = np.cos([rx, ry, rz])
    return np.array(
        [
            [cy * cz, sx * sy * cz - cx * sz, cx * sy * cz + sx * sz],
            [cy * sz, sx * sy * sz + cx * cz, cx * sy * sz - sx * cz],
            [-sy, sx * cy, cx * cy],
        ],
        dtype=np.float64,
    )


class Transform:
    """不変な 4x4 アフィン変換。"""

    __slots__ = ("_m",)

    def __init__(self, matrix: np.ndarray | Sequence[Sequence[float]] | None = None) -> None:
        if matrix is None:
            m = np.eye(4, dtype=np.float64)
        else:
            m = np.array(matrix, dtype=np.float64)
            if m.shape != (4, 4):
                raise ValueError(f"transform matrix must be 4x4, got {m.shape}")
        m.setflags(write=False)
        self._m = m

    @classmethod
    def identity(cls) -> "Transform":
        return _IDENTITY

    @classmethod
    def from_trs(
        cls,
        translate: float | Sequence[float] = (0.0, 0.0, 0.0),
        rotate: float | Sequence[float] = (0.0, 0.0, 0.0),
        scale: float | Sequence[float] = (1.0, 1.0, 1.0),
    ) -> "Transform":
        """平行移動/回転（ラジアン）/スケールから合成する。

        `rotate` にスカラを渡した場合は Z 軸回転として扱う（2D シーンの既定）。
        """
        tx, ty, tz = _as_vec3(translate, "translate")
        if isinstance(rotate, (int, float)):
            rx, ry, rz = 0.0, 0.0, float(rotate)
        else:
            rx, ry, rz = _as_vec3(rotate, "rotate")
        sx, sy, sz = _as_vec3(scale, "scale")
        m = np.eye(4, dtype=np.float64)
        m[:3, :3] = _rotation_xyz(rx, ry, rz) * np.array([sx, sy, sz], dtype=np.float64)
        m[:3, 3] = (tx, ty, tz)
        return cls(m)

    @property
    def matrix(self) -> np.ndarray:
        """読み取り専用の 4x4 行列。"""
        return self._m

    def compose(self, child: "Transform") -> "Transform":
        """`self`（親）の後に `child` を適用する合成 `self · child`。"""
        return Transform(self._m @ child._m)

    def __matmul__(self, other: "Transform") -> "Transform":
        return self.compose(other)

    def apply(self, geometry: Geometry) -> Geometry:
        """Geometry の全頂点へ適用した新しい Geometry を返す。"""
        coords, offsets = geometry.as_arrays(copy=False)
        if coords.shape[0] == 0 or self.is_identity:
            return Geometry(coords.copy(), offsets.copy())
        out = _apply_matrix(coords.astype(np.float64), np.ascontiguousarray(self._m))
        return Geometry(out.astype(np.float32), offsets.copy())

    def apply_points(self, points: np.ndarray) -> np.ndarray:
        """(N,3) 点列へ適用し float64 で返す。"""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        return _apply_matrix(pts, np.ascontiguousarray(self._m))

    @property
    def is_identity(self) -> bool:
        return bool(np.array_equal(self._m, _EYE))

    def almost_equal(self, other: "Transform", atol: float = 1e-9) -> bool:
        return bool(np.allclose(self._m, other._m, atol=atol, rtol=0.0))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transform):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self._m.tobytes())

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        t = self._m[:3, 3]
        return f"Transform(t=({t[0]:g}, {t[1]:g}, {t[2]:g}))"


_EYE = np.eye(4, dtype=np.float64)
_IDENTITY = Transform()

__all__ = ["Transform"]
