"""
どこで: `engine.render` 型定義。
何を: 外部レンダラとの契約 `Renderer`（プロトコル）とピクセルバッファ型。
なぜ: スケジューラがバックエンド（GPU 等）の実装に依存せず、能力だけで呼び出せるようにするため。

契約:
- `render(geometries, transforms, styles, frame_size) -> pixels` をサンプルごとに 1 回呼ぶ。
  geometries はローカル座標、transforms はワールド変換（同じ長さの並列リスト）。
- 戻り値はピクセルバッファ、`concurrent.futures.Future`、または awaitable（非同期投入）でもよい。
- 複数ワーカからの同時呼び出しが安全でない実装は `thread_safe = False` を宣言する
  （スケジューラがロックで直列化する）。
- デバイス喪失などジョブ全体に関わる失敗は `FatalBackendError` を送出する。
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from common.types import FrameSize
from engine.core.geometry import Geometry
from engine.core.style import Style
from engine.core.transform import Transform

PixelBuffer = Any


@runtime_checkable
class Renderer(Protocol):
    def render(
        self,
        geometries: Sequence[Geometry],
        transforms: Sequence[Transform],
        styles: Sequence[Style],
        frame_size: FrameSize,
    ) -> PixelBuffer: ...


def is_thread_safe(renderer: object) -> bool:
    """`thread_safe` 属性の宣言（未宣言は True とみなす）。"""
    return bool(getattr(renderer, "thread_safe", True))


__all__ = ["Renderer", "PixelBuffer", "is_thread_safe"]
