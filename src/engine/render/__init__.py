"""
どこで: `engine.render` サブパッケージ。
何を: 外部レンダラ契約 `Renderer` と参照実装 `RasterRenderer`。
なぜ: 評価（scene/evaluate）と描画の責務を分離し、バックエンドを差し替え可能にするため。
"""

from .raster import RasterRenderer
from .types import PixelBuffer, Renderer, is_thread_safe

__all__ = ["PixelBuffer", "RasterRenderer", "Renderer", "is_thread_safe"]
