"""
どこで: `engine.animation.base`
何を: Animation（時刻 → 属性値の純関数）の基底クラス。
なぜ: 定義域チェックと時刻 → 値の呼び出し規約を全 Animation で共通化するため。

契約:
- 生成後は不変。同じ `t` に対して常に同じ値を返す。
- 定義域外の `t` は `DomainError`（区間名入り）。
- Animation 自身は識別番号を持たない。キャッシュの寄与者番号はシーンへ結びつけた時点で
  バインディングに払い出される（`engine.scene.timeline.Binding.revision`）。
"""

from __future__ import annotations

from typing import Any

from engine.core.interval import Interval


class Animation:
    """Animation の基底。サブクラスは `_at(t)` を実装し、`domain` を与える。"""

    __slots__ = ("_domain",)

    def __init__(self, domain: Interval) -> None:
        self._domain = domain

    @property
    def domain(self) -> Interval:
        return self._domain

    @property
    def start(self) -> float:
        return self._domain.start

    @property
    def end(self) -> float:
        return self._domain.end

    @property
    def duration(self) -> float:
        return self._domain.duration

    @property
    def is_bounded(self) -> bool:
        return self._domain.is_bounded

    def at(self, t: float) -> Any:
        """時刻 `t` の値。定義域外は `DomainError`。"""
        return self._at(self._domain.check(float(t)))

    __call__ = at

    def _at(self, t: float) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"{type(self).__name__}(domain={self._domain})"


__all__ = ["Animation"]
