"""
どこで: `api.drawables`（描画物生成の高レベル API）。
何を: 登録済み Drawable ファクトリを名前で解決する薄いファサード `D`。
なぜ: `D.polygon(n_sides=5, rotate=anim)` のように、コアを知らずに描画物を組み立てられるようにするため。

Notes
-----
- 実体は `drawables.registry` のファクトリを `create_drawable(name, **params)` で呼ぶだけ。
- 未登録名は `AttributeError`（属性アクセスとして自然に失敗させる）。
- 生成結果が `Drawable` 能力を満たさない場合は `TypeError`。
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

# レジストリ登録の副作用を発火させるため、drawables パッケージを 1 度だけ import すれば十分
import drawables  # noqa: F401  (登録目的の副作用)
from drawables.registry import create_drawable, is_drawable_registered, list_drawables
from engine.core.drawable import AnimatedDrawable, Drawable, StaticDrawable
from engine.core.geometry import Geometry, LineLike


class DrawablesAPI:
    """`D` の実体。`D.<name>(**params)` で登録済みファクトリを呼ぶ。

    使い方:
        from api import D
        hexagon = D.polygon(n_sides=6, radius=40)
        curve = D.parametric_curve(lambda u: (u, u * u), samples=64)
    """

    def _build_method(self, name: str) -> Callable[..., Drawable]:
        def _drawable_method(*args: Any, **params: Any) -> Drawable:
            if not is_drawable_registered(name):
                # 登録解除と整合を取るため、キャッシュ済みの属性を破棄する
                self.__dict__.pop(name, None)
                raise AttributeError(f"'{self.__class__.__name__}' has no attribute '{name}'")
            return create_drawable(name, *args, **params)

        _drawable_method.__name__ = name
        _drawable_method.__qualname__ = f"{self.__class__.__name__}.{name}"
        return _drawable_method

    # === 直接構築（レジストリを経由しない） ===
    @staticmethod
    def static(
        lines: Geometry | Iterable[LineLike],
        **kwargs: Any,
    ) -> StaticDrawable:
        """固定形状の描画物（`transform`/`style`/`validity` を任意指定）。"""
        geom = lines if isinstance(lines, Geometry) else Geometry.from_lines(lines)
        return StaticDrawable(geom, **kwargs)

    @staticmethod
    def animated(geometry: Any, **attrs: Any) -> AnimatedDrawable:
        """属性ごとに定数か `t -> 値` を与える描画物。"""
        if not callable(geometry) and not isinstance(geometry, Geometry):
            geometry = Geometry.from_lines(geometry)
        return AnimatedDrawable(geometry, **attrs)

    @staticmethod
    def empty() -> StaticDrawable:
        """頂点ゼロの描画物（グループノード用）。"""
        return StaticDrawable(Geometry.empty())

    def __getattr__(self, name: str) -> Callable[..., Drawable]:
        """レジストリに基づき `D.<name>` を遅延生成する（未登録は AttributeError）。"""
        if name.startswith("_"):
            raise AttributeError(name)
        if not is_drawable_registered(name):
            raise AttributeError(f"'{self.__class__.__name__}' has no attribute '{name}'")
        method = self._build_method(name)
        # 2 回目以降は通常の属性参照で解決させる
        self.__dict__[name] = method
        return method

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(list_drawables()))


D = DrawablesAPI()

__all__ = ["D", "DrawablesAPI"]
