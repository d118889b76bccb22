"""
どこで: `engine.scene.cache`
何を: `(ノード, 属性, 時刻)` をキーに、値と依存トークンを保持する評価キャッシュ。
なぜ: 同一フレーム内/フレーム間の再計算を避けつつ、古い値を決して返さない（トークン一致時のみ提供）ため。

設計:
- ノードごとにバケット（ロック + LRU `OrderedDict`）を持ち、ロック粒度を細かくする。
- 同一キーへの同時要求は「先着が claim して計算、後着は Future を待つ」単一飛行（single-flight）。
- 容量超過時は最も古いエントリを追い出す。追い出しは再計算回数にのみ影響する。
- 計算は常にロック外で行う（入れ子の要求でデッドロックしない）。
- リビジョン・ハンドル・バインディングの番号はキャッシュが持つ `RevisionClock` から払い出す。
  同じキャッシュを共有する系譜どうしでも番号が重ならず、別シーンの値をトークン一致で返さない。
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future
from dataclasses import asdict, dataclass
from typing import Any, Callable, Hashable

from common.settings import get as _get_settings

logger = logging.getLogger(__name__)


class RevisionClock:
    """スレッド安全な単調カウンタ（キャッシュが所有し、共有する系譜すべてが使う）。"""

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def current(self) -> int:
        with self._lock:
            return self._value


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    stale: int = 0
    evictions: int = 0
    waits: int = 0
    stores: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class _Bucket:
    __slots__ = ("lock", "entries", "inflight")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        # key -> (token, value)
        self.entries: OrderedDict[Hashable, tuple[Any, Any]] = OrderedDict()
        # key -> (token, Future)
        self.inflight: dict[Hashable, tuple[Any, Future]] = {}


class EvaluationCache:
    """ノード単位に分割された LRU 評価キャッシュ。

    Parameters
    ----------
    capacity : int | None
        1 ノードあたりの最大エントリ数。None は設定値 `PXA_CACHE_NODE_CAPACITY`。0 で格納しない。
    enabled : bool | None
        False なら常に計算する。None は設定値 `PXA_CACHE_ENABLED`。
    """

    def __init__(self, capacity: int | None = None, *, enabled: bool | None = None) -> None:
        s = _get_settings()
        self._capacity = int(s.CACHE_NODE_CAPACITY if capacity is None else capacity)
        if self._capacity < 0:
            raise ValueError("cache capacity must be >= 0")
        self._enabled = bool(s.CACHE_ENABLED if enabled is None else enabled)
        self._buckets: dict[Hashable, _Bucket] = {}
        self._buckets_lock = threading.Lock()
        self._stats = CacheStats()
        self._stats_lock = threading.Lock()
        self._clock = RevisionClock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def clock(self) -> RevisionClock:
        """このキャッシュを使う全系譜で共有する番号の払い出し元。"""
        return self._clock

    def _bucket(self, handle: Hashable) -> _Bucket:
        b = self._buckets.get(handle)
        if b is not None:
            return b
        with self._buckets_lock:
            b = self._buckets.get(handle)
            if b is None:
                b = _Bucket()
                self._buckets[handle] = b
            return b

    def _count(self, field: str, n: int = 1) -> None:
        with self._stats_lock:
            setattr(self._stats, field, getattr(self._stats, field) + n)

    def get_or_compute(
        self,
        handle: Hashable,
        attribute: Hashable,
        t: float,
        token: Hashable,
        compute: Callable[[], Any],
    ) -> Any:
        """トークンが一致する格納値を返し、無ければ 1 回だけ計算して格納する。"""
        if not self._enabled:
            self._count("misses")
            return compute()

        bucket = self._bucket(handle)
        key = (attribute, float(t))
        with bucket.lock:
            entry = bucket.entries.get(key)
            if entry is not None:
                if entry[0] == token:
                    bucket.entries.move_to_end(key)
                    self._count("hits")
                    return entry[1]
                del bucket.entries[key]
                self._count("stale")
            flight = bucket.inflight.get(key)
            if flight is not None and flight[0] == token:
                fut = flight[1]
                owner = False
            else:
                fut = Future()
                bucket.inflight[key] = (token, fut)
                owner = True

        if not owner:
            self._count("waits")
            return fut.result()

        self._count("misses")
        try:
            value = compute()
        except BaseException as e:
            with bucket.lock:
                cur = bucket.inflight.get(key)
                if cur is not None and cur[1] is fut:
                    del bucket.inflight[key]
            fut.set_exception(e)
            raise

        with bucket.lock:
            cur = bucket.inflight.get(key)
            if cur is not None and cur[1] is fut:
                del bucket.inflight[key]
            if self._capacity > 0:
                bucket.entries[key] = (token, value)
                bucket.entries.move_to_end(key)
                self._count("stores")
                evicted = 0
                while len(bucket.entries) > self._capacity:
                    bucket.entries.popitem(last=False)
                    evicted += 1
                if evicted:
                    self._count("evictions", evicted)
        fut.set_result(value)
        return value

    def peek(self, handle: Hashable, attribute: Hashable, t: float) -> tuple[Any, Any] | None:
        """格納されている `(token, value)`（統計/LRU 順序に影響しない）。"""
        bucket = self._buckets.get(handle)
        if bucket is None:
            return None
        with bucket.lock:
            return bucket.entries.get((attribute, float(t)))

    def discard(self, handle: Hashable) -> None:
        """ノードのバケットを破棄する（削除されたノード向け）。"""
        with self._buckets_lock:
            self._buckets.pop(handle, None)

    def clear(self) -> None:
        with self._buckets_lock:
            buckets = list(self._buckets.values())
            self._buckets.clear()
        for b in buckets:
            with b.lock:
                b.entries.clear()
        logger.debug("[cache] cleared %d buckets", len(buckets))

    def __len__(self) -> int:
        with self._buckets_lock:
            buckets = list(self._buckets.values())
        total = 0
        for b in buckets:
            with b.lock:
                total += len(b.entries)
        return total

    def stats(self) -> CacheStats:
        """統計のスナップショット。"""
        with self._stats_lock:
            return CacheStats(**self._stats.as_dict())

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._stats = CacheStats()


__all__ = ["EvaluationCache", "CacheStats", "RevisionClock"]
