"""
どこで: `util.color`。
何を: 色指定の正規化/変換（Hex, RGBA 0–1, RGBA 0–255）を一元化。
なぜ: Style・Scene 背景色・ラスタライザで同一の受理仕様とエラーメッセージを提供するため。

時間変化する色:
- 値ごとに 0–1 / 0–255 を推定すると補間の途中で尺度が切り替わる（(0.5,0,0) と (2,0,0) が逆転する）。
- `probe_color_scale` で生成時に一度だけ尺度を決め、評価時は `normalize_color(value, scale=...)` を使う。
"""

from __future__ import annotations

import math
from typing import Any, Callable, Sequence

from common.types import RGBA


_COLOR_PROBES = 33


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else float(x)


def parse_hex_color_str(s: str) -> RGBA:
    """Hex 文字列から RGBA(0–1) を返す。

    受理形式: "#RRGGBB", "#RRGGBBAA", "0xRRGGBB", "0xRRGGBBAA", "RRGGBB", "RRGGBBAA"。
    大文字/小文字は不問。
    """
    t = s.strip()
    if t.startswith("#"):
        t = t[1:]
    elif t.lower().startswith("0x"):
        t = t[2:]
    if len(t) not in (6, 8):
        raise ValueError(f"invalid hex color length: '{s}' (expected RRGGBB or RRGGBBAA)")
    try:
        r = int(t[0:2], 16)
        g = int(t[2:4], 16)
        b = int(t[4:6], 16)
        a = int(t[6:8], 16) if len(t) == 8 else 255
    except ValueError as e:
        raise ValueError(f"invalid hex color: '{s}'") from e
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def _as_floats(value: object) -> list[float] | None:
    if not isinstance(value, (list, tuple)):
        return None
    seq: Sequence[object] = value
    if len(seq) not in (3, 4):
        raise ValueError("color tuple/list must be length 3 or 4")
    try:
        out = [float(x) for x in seq]  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid color tuple/list: {value!r}") from e
    return out


def normalize_color(value: object, *, scale: float | None = None) -> RGBA:
    """色を RGBA(0–1) へ正規化する。

    - 受理: Hex 文字列, (r,g,b[,a]) （0–1 または 0–255）
    - 返値: (r,g,b,a) （0–1）
    - `scale` 指定時は尺度を推定せず、各成分を `scale` で割って [0, 1] にクランプする（整数丸めはしない）。
    """
    if isinstance(value, str):
        return parse_hex_color_str(value)
    fseq = _as_floats(value)
    if fseq is None:
        raise ValueError(f"unsupported color type: {type(value)!r}")
    if scale is not None:
        if len(fseq) == 3:
            fseq.append(float(scale))
        r, g, b, a = (_clamp01(x / scale) for x in fseq)
        return (r, g, b, a)
    if len(fseq) == 3:
        fseq.append(1.0)
    # 全要素が 0..1 ならそのまま
    if all(0.0 <= x <= 1.0 for x in fseq):
        r, g, b, a = fseq
        return (r, g, b, a)
    # 0–255 とみなし、整数丸め → 0–1 へスケール（アルファ省略時は 255）
    if len(value) == 3:  # type: ignore[arg-type]
        fseq[3] = 255.0
    r8, g8, b8, a8 = (max(0, min(255, int(round(x)))) for x in fseq)
    return (r8 / 255.0, g8 / 255.0, b8 / 255.0, a8 / 255.0)


def color_scale(values: Sequence[object]) -> float:
    """色の値列の尺度（0–1 なら 1.0、いずれかの成分が 1 を超えれば 255.0）。文字列は 0–1 扱い。"""
    for v in values:
        if isinstance(v, str):
            continue
        fseq = _as_floats(v)
        if fseq is not None and any(x > 1.0 for x in fseq):
            return 255.0
    return 1.0


def probe_color_scale(
    fn: Callable[[float], Any], start: float, end: float, samples: int = _COLOR_PROBES
) -> float:
    """`fn` を `[start, end]` で等間隔に評価して尺度を決める（非有界な `end` は `start + 1`）。"""
    if not math.isfinite(end):
        end = start + 1.0
    n = max(1, samples - 1)
    return color_scale([fn(min(start + (end - start) * i / n, end)) for i in range(n + 1)])


def to_u8_rgba(value: object) -> tuple[int, int, int, int]:
    """色を RGBA(0–255) へ変換する。"""
    r, g, b, a = normalize_color(value)
    return (
        int(round(_clamp01(r) * 255)),
        int(round(_clamp01(g) * 255)),
        int(round(_clamp01(b) * 255)),
        int(round(_clamp01(a) * 255)),
    )


__all__ = [
    "parse_hex_color_str",
    "normalize_color",
    "color_scale",
    "probe_color_scale",
    "to_u8_rgba",
]
