"""
統合 Geometry 型（プロジェクト中核モジュール）

本モジュールは、Drawable が時刻ごとに返す唯一の幾何表現 `Geometry` を提供する。
評価器・キャッシュ・レンダラの三者がこの表現だけを受け渡すことで、境界での変換コストと
型分岐を無くす。

データモデル（不変条件）:
- `coords: float32 ndarray (N, 3)`: 全頂点を 1 本の連続メモリで保持（行は XYZ）。
- `offsets: int32 ndarray (M+1,)`: 各ポリラインの開始 index（末尾は必ず N）。
- i 本目の線分配列は `coords[offsets[i] : offsets[i+1]]` で取り出せる。
- dtype/形状は常に上記に正規化される（入力が 2D の場合は Z を 0 で補う）。
- 生成後の配列は書き込み不可ビューとして保持する（キャッシュ値の共有を安全にする）。

API 方針:
- 変換は `translate/scale/concat` の最小セットのみ。回転を含む一般の姿勢は `Transform` が担う。
- すべて純関数（副作用ゼロ）であり、新しい `Geometry` インスタンスを返す。

無効マーカー:
- `Geometry.empty()` は評価器が DomainError を吸収した際に差し込む「無効」ジオメトリ。
  `coords.shape==(0,3)`, `offsets==[0]`（線本数 M=0）。

直感図（複数線の格納）:

    # 2 本のポリライン（線0は3点、線1は2点）
    # coords (N=5): [0,0,0] [1,0,0] [1,1,0] [2,2,0] [3,2,0]
    # offsets (M+1=3): [0, 3, 5]
    #   線0 = coords[0:3]
    #   線1 = coords[3:5]
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np


NumberLike = float | int
LineLike = np.ndarray | Sequence[NumberLike] | Sequence[Sequence[NumberLike]]


def _readonly(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.setflags(write=False)
    return view


def _normalize_geometry_input(
    coords: np.ndarray,
    offsets: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """`Geometry` 生成時の内部正規化ヘルパ。"""

    coords_arr = np.asarray(coords, dtype=np.float32)
    if coords_arr.ndim != 2 or coords_arr.shape[1] != 3:
        raise ValueError("coords は形状 (N, 3) の配列である必要があります。")
    if not coords_arr.flags.c_contiguous:
        coords_arr = np.ascontiguousarray(coords_arr, dtype=np.float32)

    offsets_arr = np.asarray(offsets, dtype=np.int32)
    if offsets_arr.ndim != 1:
        raise ValueError("offsets は 1 次元配列である必要があります。")
    if offsets_arr.size == 0:
        raise ValueError("offsets は少なくとも1要素を含む必要があります。")
    if offsets_arr[0] != 0:
        raise ValueError("offsets[0] は常に 0 である必要があります。")
    if offsets_arr[-1] != coords_arr.shape[0]:
        raise ValueError("offsets[-1] は coords の行数と一致する必要があります。")
    if np.any(np.diff(offsets_arr) < 0):
        raise ValueError("offsets は単調非減少である必要があります。")
    if not offsets_arr.flags.c_contiguous:
        offsets_arr = np.ascontiguousarray(offsets_arr, dtype=np.int32)

    return coords_arr, offsets_arr


class Geometry:
    """統一幾何データ構造。

    フィールド:
    - `coords (N,3) float32`: すべての点列を連結した配列（読み取り専用）。
    - `offsets (M+1,) int32`: 各ポリラインの開始 index（末尾は N、読み取り専用）。
    """

    __slots__ = ("coords", "offsets")

    coords: np.ndarray
    offsets: np.ndarray

    def __init__(self, coords: np.ndarray, offsets: np.ndarray) -> None:
        norm_coords, norm_offsets = _normalize_geometry_input(coords, offsets)
        self.coords = _readonly(norm_coords)
        self.offsets = _readonly(norm_offsets)

    # ── ファクトリ ───────────────────
    @classmethod
    def empty(cls) -> "Geometry":
        """空ジオメトリ（無効マーカー兼用）を返す。"""
        return cls(np.empty((0, 3), dtype=np.float32), np.array([0], dtype=np.int32))

    @classmethod
    def from_lines(cls, lines: Iterable[LineLike]) -> "Geometry":
        """線分集合を統一表現に正規化して `Geometry` を生成する。

        Parameters
        ----------
        lines : Iterable[LineLike]
            各要素は座標列。`list`/`tuple`/`ndarray` いずれも可。形状は
            - `(K, 2)` の場合は `Z=0` を補完して `(K, 3)` に正規化。
            - `(K, 3)` の場合はそのまま使用。
            - `(3K,)` の 1 次元ベクトルは `(x, y, z)` の並びとして `(-1, 3)` に整形。

        Raises
        ------
        ValueError
            形状が `(K,2)/(K,3)/(3K,)` いずれにも適合しない場合、または 1D ベクトル長が
            3 の倍数でない場合。
        """
        np_lines: list[np.ndarray] = []
        for line in lines:
            arr = np.asarray(line, dtype=np.float32)
            if arr.ndim == 1:
                if arr.size % 3 != 0:
                    raise ValueError(
                        "1次元入力の長さは3の倍数である必要があります（(x, y, z) の並び）"
                    )
                arr = arr.reshape(-1, 3)
            elif arr.ndim != 2:
                raise ValueError(f"座標配列の形状が不正です: {arr.shape}")
            elif arr.shape[1] == 2:
                zeros = np.zeros((arr.shape[0], 1), dtype=np.float32)
                arr = np.hstack([arr, zeros])
            elif arr.shape[1] != 3:
                raise ValueError(f"座標配列の形状が不正です: {arr.shape}")
            np_lines.append(arr)

        if not np_lines:
            return cls.empty()

        offsets = np.empty(len(np_lines) + 1, dtype=np.int32)
        offsets[0] = 0
        for i, arr in enumerate(np_lines, start=1):
            offsets[i] = offsets[i - 1] + arr.shape[0]
        coords = np.concatenate(np_lines, axis=0)
        return cls(coords, offsets)

    # ── 基本操作（すべて純粋） ────────
    def as_arrays(self, *, copy: bool = False) -> tuple[np.ndarray, np.ndarray]:
        """内部配列を返す。

        `copy=False` は読み取り専用ビューを返す。書き込みが必要な場合は `copy=True`。
        """
        if copy:
            return self.coords.copy(), self.offsets.copy()
        return self.coords, self.offsets

    def lines(self) -> list[np.ndarray]:
        """ポリラインごとの `(K, 3)` ビューのリストを返す。"""
        return [
            self.coords[int(self.offsets[i]) : int(self.offsets[i + 1])]
            for i in range(len(self))
        ]

    @property
    def is_empty(self) -> bool:
        """座標配列が空かの簡易判定（読みやすさのための糖衣）。"""
        return self.coords.size == 0

    def translate(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "Geometry":
        """平行移動（純関数）。"""
        if self.is_empty:
            return Geometry(self.coords.copy(), self.offsets.copy())
        vec = np.array([dx, dy, dz], dtype=np.float32)
        return Geometry(self.coords + vec, self.offsets.copy())

    def concat(self, other: "Geometry") -> "Geometry":
        """ポリライン集合の連結（純関数）。

        `offsets` は後段の先頭を `len(self.coords)` だけシフトして統合する。
        いずれかが空集合の場合は他方のコピーを返す。
        """
        if self.is_empty:
            return Geometry(other.coords.copy(), other.offsets.copy())
        if other.is_empty:
            return Geometry(self.coords.copy(), self.offsets.copy())
        offset_shift = self.coords.shape[0]
        new_coords = np.vstack([self.coords, other.coords]).astype(np.float32, copy=False)
        adjusted_other_offsets = other.offsets[1:] + offset_shift
        new_offsets = np.hstack([self.offsets, adjusted_other_offsets]).astype(np.int32, copy=False)
        return Geometry(new_coords, new_offsets)

    def equals(self, other: "Geometry", *, atol: float = 0.0) -> bool:
        """内容比較（`atol=0` で完全一致）。"""
        if self.coords.shape != other.coords.shape:
            return False
        if not np.array_equal(self.offsets, other.offsets):
            return False
        if atol == 0.0:
            return bool(np.array_equal(self.coords, other.coords))
        return bool(np.allclose(self.coords, other.coords, atol=atol, rtol=0.0))

    # 演算子糖衣
    def __add__(self, other: "Geometry") -> "Geometry":
        """糖衣: `concat` のエイリアス。"""
        return self.concat(other)

    def __len__(self) -> int:
        """ポリライン本数（`M`）を返す。"""
        return int(self.offsets.shape[0] - 1) if self.offsets.size > 0 else 0

    @property
    def n_vertices(self) -> int:
        """頂点数 `N` を返す。"""
        return int(self.coords.shape[0])

    @property
    def n_lines(self) -> int:
        """ポリライン本数 `M` を返す。`len(self)` と同義。"""
        return len(self)

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"Geometry(N={self.n_vertices}, M={self.n_lines})"
