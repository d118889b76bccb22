from __future__ import annotations

import math

import pytest

import animations  # noqa: F401  (組み込み登録)
from animations.registry import (
    animation,
    create_animation,
    easing,
    get_easing,
    is_animation_registered,
    is_easing_registered,
    list_animations,
    list_easings,
    resolve_easing,
    unregister,
    unregister_easing,
)
from engine.animation.base import Animation
from engine.animation.primitives import Constant
from engine.core.errors import ConstructionError


def test_builtin_animations_are_registered() -> None:
    assert {"constant", "linear", "keyframes", "bezier", "parametric", "oscillator"} <= set(
        list_animations()
    )


def test_builtin_easings_are_registered() -> None:
    names = list_easings()
    assert {"linear", "ease_in", "ease_out", "ease_in_out", "smoothstep"} <= set(names)
    assert is_easing_registered("EaseInOut")


@pytest.mark.parametrize("name", sorted(list_easings()))
def test_easings_fix_endpoints_and_stay_in_range(name: str) -> None:
    fn = get_easing(name)
    assert fn(0.0) == pytest.approx(0.0, abs=1e-12)
    assert fn(1.0) == pytest.approx(1.0, abs=1e-12)
    for i in range(1, 20):
        v = fn(i / 20)
        assert 0.0 <= v <= 1.0


def test_ease_in_out_is_symmetric() -> None:
    fn = get_easing("ease_in_out")
    for i in range(11):
        u = i / 10
        assert fn(u) + fn(1.0 - u) == pytest.approx(1.0)


def test_create_animation_with_named_easing() -> None:
    a = create_animation("linear", 0.0, 1.0, 2.0, "ease_in")
    assert isinstance(a, Animation)
    assert a.at(1.0) == pytest.approx(0.25)
    k = create_animation("keyframes", [(0.0, 0.0), (1.0, 10.0)], "ease_out")
    assert k.at(0.5) == pytest.approx(7.5)
    b = create_animation("bezier", [0.0, 1.0, 1.0], 1.0)
    assert b.at(0.5) == pytest.approx(0.75)
    p = create_animation("parametric", math.sin, end=math.pi)
    assert p.duration == pytest.approx(math.pi)
    c = create_animation("constant", 3.0, 1.0, start=2.0)
    assert c.domain.start == 2.0 and c.at(3.0) == 3.0


def test_unknown_easing_name_raises() -> None:
    with pytest.raises(KeyError):
        create_animation("linear", 0.0, 1.0, 1.0, "no_such_curve")
    with pytest.raises(TypeError):
        resolve_easing(3)


def test_resolve_easing_passthrough() -> None:
    fn = lambda u: u  # noqa: E731
    assert resolve_easing(None) is None
    assert resolve_easing(fn) is fn
    assert resolve_easing("smoothstep") is get_easing("smoothstep")


def test_custom_registration_round_trip() -> None:
    @animation("tmp_hold")
    def _hold(value: float) -> Animation:
        return Constant(value, 1.0)

    @easing
    def tmp_step(u: float) -> float:
        return 0.0 if u < 1.0 else 1.0

    try:
        assert create_animation("tmp_hold", 2.0).at(0.5) == 2.0
        assert resolve_easing("tmp_step")(0.5) == 0.0
    finally:
        unregister("tmp_hold")
        unregister_easing("tmp_step")
    assert not is_animation_registered("tmp_hold")
    assert not is_easing_registered("tmp_step")


def test_factory_must_return_an_animation() -> None:
    @animation("tmp_not_anim")
    def _bad() -> float:
        return 1.0

    try:
        with pytest.raises(TypeError, match="Animation"):
            create_animation("tmp_not_anim")
    finally:
        unregister("tmp_not_anim")


def test_factories_validate_at_construction() -> None:
    with pytest.raises(ConstructionError):
        create_animation("linear", 0.0, 1.0, -1.0)
    with pytest.raises(ConstructionError):
        create_animation("oscillator", "sine", lo=1.0, hi=0.0)
