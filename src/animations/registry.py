"""
どこで: `animations` のレジストリ層。
何を: `@animation`（Animation ファクトリ）と `@easing`（`[0,1] -> [0,1]` のカーブ）の 2 系統を登録・解決する。
なぜ: 葉 Animation とイージングを名前で拡張できるようにし、`api.A` から安全に解決するため。

概要:
- `drawables.registry` と対称の API（`@animation` / `get_animation` / `list_animations` / ...）。
- `create_animation` は戻り値が `Animation` であることを検証する。
- `resolve_easing` は None・呼び出し可能・登録名のいずれも受け付ける。
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Mapping

from common.base_registry import BaseRegistry
from engine.animation.base import Animation

AnimationFactory = Callable[..., Animation]
EasingFn = Callable[[float], float]

_animation_registry = BaseRegistry(kind="animation")
_easing_registry = BaseRegistry(kind="easing")


def _decorator_for(registry: BaseRegistry, label: str):
    def deco(arg: Any | None = None, /, name: str | None = None):
        def _register_checked(obj: Any, resolved_name: str | None = None):
            if not inspect.isfunction(obj):
                raise TypeError(f"@{label} は関数のみ登録可能です: got {obj!r}")
            return registry.register(resolved_name)(obj)

        # 直付け (@animation)
        if inspect.isfunction(arg) and name is None:
            return _register_checked(arg, None)

        # 位置引数で名前を渡した (@animation("name"))
        if isinstance(arg, str) and name is None:

            def _decorator_named(obj: Any):
                return _register_checked(obj, arg)

            return _decorator_named

        def _decorator_generic(obj: Any):
            return _register_checked(obj, name)

        return _decorator_generic

    deco.__name__ = label
    return deco


animation = _decorator_for(_animation_registry, "animation")
animation.__doc__ = """Animation ファクトリを登録するデコレータ（`@animation` / `@animation("name")`）。"""

easing = _decorator_for(_easing_registry, "easing")
easing.__doc__ = """イージングカーブ `u -> v`（u, v ∈ [0,1]）を登録するデコレータ。"""


# ---- Animation ----
def get_animation(name: str) -> AnimationFactory:
    """登録された Animation ファクトリを取得（未登録は KeyError）。"""
    return _animation_registry.get(name)


def create_animation(name: str, *args: Any, **params: Any) -> Animation:
    """名前でファクトリを解決して Animation を生成する（戻り値が Animation でなければ TypeError）。"""
    obj = get_animation(name)(*args, **params)
    if not isinstance(obj, Animation):
        raise TypeError(
            f"animation '{name}' のファクトリが Animation を返しませんでした: got {type(obj).__name__}"
        )
    return obj


def list_animations() -> list[str]:
    return sorted(_animation_registry.list_all())


def is_animation_registered(name: str) -> bool:
    return _animation_registry.is_registered(name)


# ---- Easing ----
def get_easing(name: str) -> EasingFn:
    """登録されたイージングを取得（未登録は KeyError）。"""
    return _easing_registry.get(name)


def resolve_easing(value: str | EasingFn | None) -> EasingFn | None:
    """None/呼び出し可能はそのまま、文字列は登録名として解決する。"""
    if value is None or callable(value):
        return value
    if isinstance(value, str):
        return get_easing(value)
    raise TypeError(f"easing には名前か呼び出し可能を指定してください: got {value!r}")


def list_easings() -> list[str]:
    return sorted(_easing_registry.list_all())


def is_easing_registered(name: str) -> bool:
    return _easing_registry.is_registered(name)


def unregister(name: str) -> None:
    """Animation ファクトリの登録を解除（存在しない場合は無視）。"""
    _animation_registry.unregister(name)


def unregister_easing(name: str) -> None:
    _easing_registry.unregister(name)


def get_registry() -> Mapping[str, Any]:
    """読み取り専用ビューとして Animation レジストリ辞書を返す。"""
    return _animation_registry.registry


def get_easing_registry() -> Mapping[str, Any]:
    return _easing_registry.registry


__all__ = [
    "animation",
    "easing",
    "get_animation",
    "create_animation",
    "list_animations",
    "is_animation_registered",
    "get_easing",
    "resolve_easing",
    "list_easings",
    "is_easing_registered",
    "unregister",
    "unregister_easing",
    "get_registry",
    "get_easing_registry",
]
