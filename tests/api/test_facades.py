from __future__ import annotations

import pytest

from api import A, D, AnimationsAPI, DrawablesAPI, drawable
from drawables.registry import unregister
from engine.animation.base import Animation
from engine.core.drawable import Drawable, StaticDrawable
from engine.core.errors import ConstructionError
from engine.core.geometry import Geometry


@pytest.mark.smoke
def test_d_dispatches_to_registered_factories() -> None:
    hexagon = D.polygon(n_sides=6, radius=10.0)
    assert isinstance(hexagon, Drawable)
    assert hexagon.geometry(0.0).n_vertices == 7
    # 2 回目は __dict__ にキャッシュされたメソッドで解決
    assert "polygon" in D.__dict__
    assert "polygon" in dir(D)


def test_d_unknown_name_is_attribute_error() -> None:
    with pytest.raises(AttributeError):
        D.no_such_shape()
    with pytest.raises(AttributeError):
        D._private


def test_d_follows_unregister() -> None:
    api = DrawablesAPI()

    @drawable("tmp_api_shape")
    def _tmp() -> StaticDrawable:
        return StaticDrawable(Geometry.empty())

    method = api.tmp_api_shape
    assert isinstance(method(), StaticDrawable)
    unregister("tmp_api_shape")
    with pytest.raises(AttributeError):
        method()
    assert "tmp_api_shape" not in api.__dict__


def test_d_direct_constructors() -> None:
    s = D.static([[(0.0, 0.0), (1.0, 1.0)]])
    assert s.geometry(0.0).n_vertices == 2
    a = D.animated([[(0.0, 0.0), (1.0, 1.0)]], opacity=A.linear(0.0, 1.0, 1.0))
    assert a.style(0.5).opacity == pytest.approx(0.5)
    assert D.empty().geometry(0.0).is_empty


@pytest.mark.smoke
def test_a_dispatches_and_combines() -> None:
    fade = A.ease(A.linear(0.0, 1.0, 1.0), "ease_in")
    assert isinstance(fade, Animation)
    assert fade.at(0.5) == pytest.approx(0.25)
    seq = A.sequence(A.linear(0.0, 1.0, 1.0), A.linear(1.0, 0.0, 1.0))
    assert seq.at(1.5) == pytest.approx(0.5)
    looped = A.loop(A.linear(0.0, 1.0, 0.5), 2)
    assert looped.duration == pytest.approx(1.0)
    assert A.reverse(A.linear(0.0, 1.0, 1.0)).at(0.25) == pytest.approx(0.75)
    assert A.shift(A.constant(2.0, 1.0), 3.0).domain.start == 3.0
    wobble = A.parallel(A.constant(1.0, 1.0), A.oscillator("square", lo=0.0, hi=1.0, duration=1.0), merge="additive")
    assert wobble.at(0.25) == pytest.approx(2.0)


def test_a_parallel_requires_merge() -> None:
    with pytest.raises(ConstructionError):
        A.parallel(A.constant(1.0, 1.0), A.constant(2.0, 1.0))


def test_a_ease_requires_a_curve() -> None:
    with pytest.raises(TypeError):
        A.ease(A.linear(0.0, 1.0, 1.0), None)  # type: ignore[arg-type]
    with pytest.raises(KeyError):
        A.ease(A.linear(0.0, 1.0, 1.0), "not_a_curve")


def test_a_lists_easings_and_rejects_unknown() -> None:
    assert "ease_in_out" in A.easings()
    assert A.MergePolicy.ADDITIVE.value == "additive"
    with pytest.raises(AttributeError):
        A.no_such_animation
    assert isinstance(AnimationsAPI().constant(1.0), Animation)
