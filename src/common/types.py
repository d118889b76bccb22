"""
どこで: `common` の型定義。
何を: RGBA/FrameSize などの軽量エイリアス（組込みジェネリックで記述）。
なぜ: 依存の少ない場所に配置して循環と分散定義を避けるため。
"""

RGBA = tuple[float, float, float, float]
FrameSize = tuple[int, int]  # (width, height) [px]

__all__ = ["RGBA", "FrameSize"]
