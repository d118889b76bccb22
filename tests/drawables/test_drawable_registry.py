from __future__ import annotations

import pytest

import drawables  # noqa: F401  (組み込み登録)
from drawables.registry import (
    create_drawable,
    drawable,
    get_drawable,
    get_registry,
    is_drawable_registered,
    list_drawables,
    unregister,
)
from engine.core.drawable import Drawable, StaticDrawable
from engine.core.geometry import Geometry


def test_builtins_are_registered() -> None:
    names = list_drawables()
    assert {"polygon", "polyline", "parametric_curve"} <= set(names)
    assert names == sorted(names)
    assert is_drawable_registered("ParametricCurve")


def test_decorator_forms_register_and_unregister() -> None:
    @drawable
    def _tmp_bare() -> StaticDrawable:
        return StaticDrawable(Geometry.empty())

    @drawable("tmp_named")
    def _anything() -> StaticDrawable:
        return StaticDrawable(Geometry.empty())

    @drawable(name="TmpKeyword")
    def _other() -> StaticDrawable:
        return StaticDrawable(Geometry.empty())

    try:
        assert get_drawable("_tmp_bare") is _tmp_bare
        assert get_drawable("tmp_named") is _anything
        assert is_drawable_registered("tmp_keyword")
        assert isinstance(create_drawable("tmp_named"), Drawable)
        assert "tmp_named" in get_registry()
    finally:
        for n in ("_tmp_bare", "tmp_named", "tmp_keyword"):
            unregister(n)
    assert not is_drawable_registered("tmp_named")


def test_only_functions_can_be_registered() -> None:
    with pytest.raises(TypeError):
        drawable("tmp_cls")(type("NotAFunction", (), {}))


def test_duplicate_name_is_rejected() -> None:
    with pytest.raises(ValueError):

        @drawable("polygon")
        def polygon_again():  # pragma: no cover - 登録で失敗する
            return None


def test_factory_must_return_a_drawable() -> None:
    @drawable("tmp_bad")
    def _bad() -> object:
        return object()

    try:
        with pytest.raises(TypeError, match="Drawable"):
            create_drawable("tmp_bad")
    finally:
        unregister("tmp_bad")


def test_unknown_name_raises_key_error() -> None:
    with pytest.raises(KeyError):
        get_drawable("no_such_drawable")
