"""
どこで: `engine.runtime` の出力ペイロード型。
何を: 1 サンプルぶんの描画結果 `Frame`（時刻・サンプル ID・ピクセル・評価状態）。
なぜ: スケジューラから出力先（コレクタ）への受け渡しを不変な値で固定するため。
"""

from __future__ import annotations

from dataclasses import dataclass, field

from engine.evaluate.state import SceneState
from engine.render.types import PixelBuffer


@dataclass(frozen=True, slots=True)
class Frame:
    """描画済み 1 フレーム。出力先へ渡るまではスケジューラが所有する。"""

    sample_index: int
    t: float
    pixels: PixelBuffer
    state: SceneState | None = field(default=None, compare=False)


__all__ = ["Frame"]
