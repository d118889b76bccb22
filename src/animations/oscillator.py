"""
どこで: `animations.oscillator`
何を: 周期波形（sine/triangle/saw/square/pulse）・サンプル&ホールド・1D Perlin fBm による振動 Animation。
なぜ: 任意属性（回転角・不透明度・太さ等）を時間で変調する定番の葉 Animation を、決定的な純関数として提供するため。

設計方針:
- 時刻は `t - start`（Animation 局所時刻）で評価する。周期/位相は秒/周期単位。
- 出力範囲は `lo..hi` へ線形射影し、最終 clamp。
- S&H/Perlin は `seed` から決定的に生成する（同じ t は常に同じ値）。
"""

from __future__ import annotations

import math
from typing import Callable

from engine.animation.base import Animation
from engine.core.errors import ConstructionError
from engine.core.interval import Interval

from .registry import animation

WAVES = ("sine", "triangle", "saw_up", "saw_down", "square", "pulse", "sh", "perlin")

_MASK64 = 0xFFFFFFFFFFFFFFFF


def _frac(x: float) -> float:
    """x の小数部（0.0 <= r < 1.0）。負の値にも安定。"""
    r = x - math.floor(x)
    return 0.0 if (r < 0.0 or r >= 1.0) else r


def _skewed(phi: float, skew: float) -> float:
    """位相 `phi` (0..1) を単調写像 `phi**gamma`（gamma = 4**skew ∈ [0.25, 4]）で歪める。skew=0 で恒等。"""
    gamma = 4.0 ** max(-1.0, min(1.0, skew))
    return phi**gamma


def _splitmix64(x: int) -> int:
    z = (x + 0x9E3779B97F4A7C15) & _MASK64
    z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & _MASK64
    z = (z ^ (z >> 27)) * 0x94D049BB133111EB & _MASK64
    return (z ^ (z >> 31)) & _MASK64


def _hash01(seed: int, idx: int) -> float:
    """`(seed, idx)` から [0,1) の一様乱数を決定的に得る（上位 53bit）。"""
    return (_splitmix64((seed ^ idx) & _MASK64) >> 11) / float(1 << 53)


def _permutation(seed: int) -> list[int]:
    # LCG による Fisher–Yates。参照容易化のため 512 に拡張
    arr = list(range(256))
    st = seed & _MASK64
    for i in range(255, 0, -1):
        st = (6364136223846793005 * st + 1) & _MASK64
        j = int(st % (i + 1))
        arr[i], arr[j] = arr[j], arr[i]
    return arr + arr


def _perlin1(x: float, perm: list[int]) -> float:
    fl = math.floor(x)
    xi = int(fl) & 255
    xf = x - fl
    u = xf * xf * xf * (xf * (xf * 6.0 - 15.0) + 10.0)
    g0 = xf if (perm[xi] & 1) == 0 else -xf
    g1 = (xf - 1.0) if (perm[xi + 1] & 1) == 0 else -(xf - 1.0)
    return g0 + u * (g1 - g0)


class Oscillator(Animation):
    """LFO 風の振動 Animation。`at(t)` は `lo..hi` の float を返す。

    引数:
        wave: 波形名（`WAVES` のいずれか）。
        freq: 周波数 [Hz]。`period` 指定時は無視。
        period: 周期 [秒]。
        phase: 位相 [周期単位]。Perlin では時間オフセット。
        lo, hi: 出力範囲（hi > lo）。
        pw: パルス幅（pulse のみ、0 < pw < 1）。
        skew: 歪み（-1..1、triangle/saw のみ）。
        seed: 決定的シード（sh/perlin）。
        octaves, persistence, lacunarity: Perlin fBm パラメータ。
        duration, start: 定義域 `[start, start+duration]`（既定は右側非有界）。
    """

    __slots__ = (
        "_wave",
        "_freq",
        "_phase",
        "_lo",
        "_hi",
        "_pw",
        "_skew",
        "_seed",
        "_octaves",
        "_persistence",
        "_lacunarity",
        "_perm",
        "_fn",
    )

    def __init__(
        self,
        wave: str = "sine",
        *,
        freq: float | None = 1.0,
        period: float | None = None,
        phase: float = 0.0,
        lo: float = 0.0,
        hi: float = 1.0,
        pw: float = 0.5,
        skew: float = 0.0,
        seed: int | None = None,
        octaves: int = 3,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
        duration: float = math.inf,
        start: float = 0.0,
    ) -> None:
        w = (wave or "sine").lower()
        if w not in WAVES:
            raise ConstructionError(f"unknown oscillator wave {wave!r}; expected one of {WAVES}")
        if not hi > lo:
            raise ConstructionError("oscillator requires hi > lo")
        if period is not None:
            if period <= 0.0:
                raise ConstructionError("oscillator period must be positive")
            f = 1.0 / float(period)
        else:
            f = float(freq if freq is not None else 1.0)
            if f <= 0.0:
                raise ConstructionError("oscillator freq must be positive")
        if w == "pulse" and not (0.0 < pw < 1.0):
            raise ConstructionError("pulse width must be in (0, 1)")
        if w == "perlin":
            if octaves < 1:
                raise ConstructionError("perlin octaves must be >= 1")
            if lacunarity < 1.0:
                raise ConstructionError("perlin lacunarity must be >= 1")
            if not (0.0 <= persistence <= 1.0):
                raise ConstructionError("perlin persistence must be in [0, 1]")
        if duration < 0:
            raise ConstructionError("oscillator duration must be non-negative")
        super().__init__(Interval.of_duration(start, duration))
        self._wave = w
        self._freq = f
        self._phase = float(phase)
        self._lo = float(lo)
        self._hi = float(hi)
        self._pw = float(pw)
        self._skew = float(skew)
        self._seed = 0 if seed is None else int(seed)
        self._octaves = int(octaves)
        self._persistence = float(persistence)
        self._lacunarity = float(lacunarity)
        self._perm = _permutation(self._seed) if w == "perlin" else None
        self._fn: Callable[[float], float] = getattr(self, f"_wave_{w}")

    @property
    def wave(self) -> str:
        return self._wave

    @property
    def freq(self) -> float:
        return self._freq

    # ---- 波形（いずれも -1..1） ----
    def _phi(self, x: float) -> float:
        return _frac(self._freq * x + self._phase)

    def _wave_sine(self, x: float) -> float:
        return math.sin(2.0 * math.pi * self._phi(x))

    def _wave_triangle(self, x: float) -> float:
        p = _skewed(self._phi(x), self._skew)
        return 4.0 * p - 1.0 if p < 0.5 else 3.0 - 4.0 * p

    def _wave_saw_up(self, x: float) -> float:
        return 2.0 * _skewed(self._phi(x), self._skew) - 1.0

    def _wave_saw_down(self, x: float) -> float:
        return 1.0 - 2.0 * _skewed(self._phi(x), self._skew)

    def _wave_square(self, x: float) -> float:
        return 1.0 if self._phi(x) < 0.5 else -1.0

    def _wave_pulse(self, x: float) -> float:
        return 1.0 if self._phi(x) < self._pw else -1.0

    def _wave_sh(self, x: float) -> float:
        k = int(math.floor(self._freq * x + self._phase))
        return 2.0 * _hash01(self._seed, k) - 1.0

    def _wave_perlin(self, x: float) -> float:
        assert self._perm is not None
        pos = self._freq * x + self._phase
        amp, freq, total, amp_sum = 1.0, 1.0, 0.0, 0.0
        for _ in range(self._octaves):
            total += _perlin1(pos * freq, self._perm) * amp
            amp_sum += amp
            amp *= self._persistence
            freq *= self._lacunarity
        return max(-1.0, min(1.0, total / amp_sum))

    def _at(self, t: float) -> float:
        y = self._fn(t - self.start)
        out = self._lo + (self._hi - self._lo) * (y + 1.0) * 0.5
        return self._lo if out < self._lo else self._hi if out > self._hi else out


@animation
def oscillator(wave: str = "sine", **params) -> Oscillator:
    """`Oscillator` を構成して返すファクトリ（引数は `Oscillator` と同じ）。"""
    return Oscillator(wave, **params)


__all__ = ["Oscillator", "oscillator", "WAVES"]
