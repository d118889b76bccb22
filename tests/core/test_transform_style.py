from __future__ import annotations

import math

import numpy as np
import pytest

from engine.core.geometry import Geometry
from engine.core.style import DEFAULT_STYLE, Style
from engine.core.transform import Transform


def test_identity_and_from_trs() -> None:
    assert Transform.identity().is_identity
    assert Transform.from_trs().is_identity
    xf = Transform.from_trs((1.0, 2.0), math.pi / 2, 2.0)
    pts = xf.apply_points(np.array([[1.0, 0.0, 0.0]]))
    # S → Rz(90°) → T
    assert np.allclose(pts[0], [1.0, 4.0, 0.0])


def test_compose_order_parent_then_child() -> None:
    parent = Transform.from_trs((10.0, 0.0, 0.0))
    child = Transform.from_trs((0.0, 0.0, 0.0), math.pi / 2)
    world = parent @ child
    pts = world.apply_points(np.array([[1.0, 0.0, 0.0]]))
    assert np.allclose(pts[0], [10.0, 1.0, 0.0])
    assert world.almost_equal(parent.compose(child))


def test_apply_geometry_keeps_topology(geom_two_lines: Geometry) -> None:
    xf = Transform.from_trs((1.0, 1.0, 0.0))
    out = xf.apply(geom_two_lines)
    assert np.array_equal(out.offsets, geom_two_lines.offsets)
    assert np.allclose(out.coords, geom_two_lines.coords + np.array([1.0, 1.0, 0.0]))
    assert Transform.identity().apply(Geometry.empty()).is_empty


def test_transform_is_immutable_value() -> None:
    a = Transform.from_trs((1.0, 2.0, 3.0))
    b = Transform.from_trs((1.0, 2.0, 3.0))
    assert a == b and hash(a) == hash(b)
    with pytest.raises(ValueError):
        a.matrix[0, 0] = 2.0
    with pytest.raises(ValueError):
        Transform(np.eye(3))


def test_style_normalizes_and_validates() -> None:
    s = Style(color="#ff000080", thickness=2.0, opacity=0.5)
    assert s.color == pytest.approx((1.0, 0.0, 0.0, 128 / 255))
    assert s.effective_rgba[3] == pytest.approx(0.5 * 128 / 255)
    assert Style(color=(255, 0, 0)).color == (1.0, 0.0, 0.0, 1.0)
    with pytest.raises(ValueError):
        Style(thickness=-1.0)
    with pytest.raises(ValueError):
        Style(opacity=1.5)
    assert Style.default() is DEFAULT_STYLE
    assert DEFAULT_STYLE.with_props(thickness=3.0).thickness == 3.0
