"""
どこで: `engine.animation.merge`
何を: 同一属性への同時書き込みを解決するマージ方針 `MergePolicy` と合成関数 `blend`。
なぜ: 暗黙の「後勝ち」を禁止し、明示された方針で決定的に合成するため。

方針:
- override: 後から宣言された値で置き換える。
- additive: 和。スカラ/タプルは要素ごと、Geometry はポリラインの連結（宣言順）。
  回転（オイラー角）も成分ごとの和とする（合成後に `T·Rz·Ry·Rx·S` で行列化）。
- max: 要素ごとの最大。Geometry には定義しない。
"""

from __future__ import annotations

from enum import Enum
from numbers import Real
from typing import Any

import numpy as np

from engine.core.errors import ConstructionError
from engine.core.geometry import Geometry


class MergePolicy(str, Enum):
    OVERRIDE = "override"
    ADDITIVE = "additive"
    MAX = "max"

    @classmethod
    def coerce(cls, value: "MergePolicy | str | None") -> "MergePolicy":
        if value is None:
            raise ConstructionError("an explicit merge policy (override, additive, max) is required")
        if isinstance(value, MergePolicy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ConstructionError(f"unknown merge policy: {value!r}") from e


_SCALAR_OPS = {"add": lambda x, y: x + y, "max": max}
_ARRAY_OPS = {"add": np.add, "max": np.maximum}


def _elementwise(a: Any, b: Any, kind: str) -> Any:
    if isinstance(a, Real) and isinstance(b, Real):
        return float(_SCALAR_OPS[kind](float(a), float(b)))
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        return _ARRAY_OPS[kind](np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))
    if isinstance(a, (tuple, list)) and isinstance(b, (tuple, list)):
        if len(a) != len(b):
            raise TypeError(f"cannot merge sequences of length {len(a)} and {len(b)}")
        return tuple(_elementwise(x, y, kind) for x, y in zip(a, b))
    raise TypeError(f"cannot merge {type(a).__name__} with {type(b).__name__}")


def blend(policy: MergePolicy | str, acc: Any, value: Any) -> Any:
    """`acc`（先行する値）に `value`（後続の値）を方針に従って合成する。"""
    p = MergePolicy.coerce(policy)
    if p is MergePolicy.OVERRIDE:
        return value
    if p is MergePolicy.ADDITIVE:
        if isinstance(acc, Geometry) and isinstance(value, Geometry):
            return acc.concat(value)
        return _elementwise(acc, value, "add")
    if isinstance(acc, Geometry) or isinstance(value, Geometry):
        raise TypeError("max merge is not defined for geometry")
    return _elementwise(acc, value, "max")


def check_compatible(policy: MergePolicy | str, a: Any, b: Any) -> None:
    """代表値どうしで合成を試し、不整合なら `ConstructionError`。"""
    try:
        blend(policy, a, b)
    except (TypeError, ValueError) as e:
        raise ConstructionError(f"values cannot be merged with policy {MergePolicy.coerce(policy).value}: {e}") from e


__all__ = ["MergePolicy", "blend", "check_compatible"]
