"""
どこで: `drawables` のレジストリ層（ファクトリ関数専用）。
何を: `@drawable` デコレータで Drawable ファクトリを登録し、取得/一覧/検査/生成を提供。
なぜ: 描画物の拡張を一貫 API で管理し、`api.D` から名前で安全に解決するため。

概要:
- `animations.registry` と対称の API（`@drawable` / `get_drawable` / `list_drawables` / `is_drawable_registered`）。
- 登録対象は「関数」のみ（`Drawable` 能力を満たす値を返す）。
- デコレータは名前省略可（`@drawable` / `@drawable()`）と明示名指定をサポート。
- コア（engine.*）はこのレジストリを参照しない。
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Mapping

from common.base_registry import BaseRegistry
from engine.core.drawable import Drawable

DrawableFactory = Callable[..., Drawable]

_drawable_registry = BaseRegistry(kind="drawable")


def drawable(arg: Any | None = None, /, name: str | None = None):
    """Drawable ファクトリをレジストリに登録するデコレータ。

    使用例:
    - `@drawable` / `@drawable()`                          → 関数名から自動推論。
    - `@drawable("custom")` / `@drawable(name="custom")`   → 明示名で登録。

    例外:
    - TypeError: 関数以外を登録しようとした場合。
    - ValueError: 同名で別の関数が既に登録されている場合。
    """

    def _register_checked(obj: Any, resolved_name: str | None = None):
        if not inspect.isfunction(obj):
            raise TypeError(f"@drawable は関数のみ登録可能です: got {obj!r}")
        return _drawable_registry.register(resolved_name)(obj)

    # 直付け (@drawable)
    if inspect.isfunction(arg) and name is None:
        return _register_checked(arg, None)

    # 位置引数で名前を渡した (@drawable("name"))
    if isinstance(arg, str) and name is None:

        def _decorator_named(obj: Any):
            return _register_checked(obj, arg)

        return _decorator_named

    def _decorator_generic(obj: Any):
        return _register_checked(obj, name)

    return _decorator_generic


def get_drawable(name: str) -> DrawableFactory:
    """登録された Drawable ファクトリを取得（未登録は KeyError）。"""
    return _drawable_registry.get(name)


def create_drawable(name: str, *args: Any, **params: Any) -> Drawable:
    """名前でファクトリを解決して Drawable を生成する。

    例外:
        KeyError: 未登録の名前。
        TypeError: ファクトリの戻り値が Drawable 能力（validity/geometry/transform/style）を満たさない。
    """
    factory = get_drawable(name)
    obj = factory(*args, **params)
    if not isinstance(obj, Drawable):
        raise TypeError(
            f"drawable '{name}' のファクトリが Drawable を返しませんでした: got {type(obj).__name__}"
        )
    return obj


def list_drawables() -> list[str]:
    """登録されている Drawable 名の一覧（ソート済み）。"""
    return sorted(_drawable_registry.list_all())


def is_drawable_registered(name: str) -> bool:
    return _drawable_registry.is_registered(name)


def clear_registry() -> None:
    """レジストリをクリア（テスト用）。"""
    _drawable_registry.clear()


def unregister(name: str) -> None:
    """名前を指定して登録を解除（存在しない場合は無視）。"""
    _drawable_registry.unregister(name)


def get_registry() -> Mapping[str, Any]:
    """読み取り専用ビューとしてレジストリ辞書を返す。"""
    return _drawable_registry.registry


__all__ = [
    "drawable",
    "get_drawable",
    "create_drawable",
    "list_drawables",
    "is_drawable_registered",
    "clear_registry",
    "unregister",
    "get_registry",
]
