from __future__ import annotations

import numpy as np
import pytest

from animations.builtin import linear
from drawables.parametric_curve import parametric_curve
from drawables.polygon import polygon
from drawables.polyline import polyline
from engine.core.errors import DomainError
from engine.core.interval import Interval


def test_polygon_is_a_closed_loop_on_the_circle() -> None:
    d = polygon(5, radius=2.0)
    g = d.geometry(0.0)
    assert g.n_lines == 1 and g.n_vertices == 6
    np.testing.assert_allclose(g.coords[0], g.coords[-1])
    radii = np.linalg.norm(g.coords[:, :2], axis=1)
    np.testing.assert_allclose(radii, 2.0, rtol=1e-6)
    np.testing.assert_allclose(g.coords[0], [2.0, 0.0, 0.0], atol=1e-6)


@pytest.mark.parametrize("n, expected", [(1, 3), (3.4, 3), (500, 120)])
def test_polygon_side_count_is_clamped(n: float, expected: int) -> None:
    assert polygon(n).geometry(0.0).n_vertices == expected + 1


def test_polygon_phase_rotates_first_vertex() -> None:
    g = polygon(4, radius=1.0, phase=90.0).geometry(0.0)
    np.testing.assert_allclose(g.coords[0, :2], [0.0, 1.0], atol=1e-6)


def test_drawable_attributes_accept_animations() -> None:
    d = polygon(6, translate=linear((0.0, 0.0, 0.0), (10.0, 0.0, 0.0), 1.0), opacity=0.5)
    xf = d.transform(0.5)
    assert xf.apply_points(np.zeros((1, 3)))[0, 0] == pytest.approx(5.0)
    assert d.style(0.5).opacity == 0.5


def test_validity_window_is_enforced() -> None:
    d = polygon(3, validity=Interval(0.0, 1.0))
    with pytest.raises(DomainError, match=r"\[0, 1\]"):
        d.geometry(2.0)


def test_polyline_open_and_closed() -> None:
    pts = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]
    assert polyline(pts).geometry(0.0).n_vertices == 3
    closed = polyline(pts, closed=True).geometry(0.0)
    assert closed.n_vertices == 4
    np.testing.assert_allclose(closed.coords[0], closed.coords[-1])


@pytest.mark.parametrize("bad", [[(0.0, 0.0)], [(0.0, 0.0, 0.0, 0.0), (1.0, 1.0, 1.0, 1.0)], [0.0, 1.0]])
def test_polyline_rejects_bad_shapes(bad) -> None:
    with pytest.raises(ValueError):
        polyline(bad)


def test_parametric_curve_static_sampling() -> None:
    d = parametric_curve(lambda u: (u, u * u), u_range=(0.0, 2.0), samples=5)
    g = d.geometry(0.0)
    np.testing.assert_allclose(g.coords[:, 0], [0.0, 0.5, 1.0, 1.5, 2.0])
    np.testing.assert_allclose(g.coords[:, 1], [0.0, 0.25, 1.0, 2.25, 4.0])
    assert d.geometry(3.0) is g


def test_parametric_curve_time_dependent() -> None:
    d = parametric_curve(lambda u, t: (u, t), samples=3, time_dependent=True)
    np.testing.assert_allclose(d.geometry(0.25).coords[:, 1], 0.25)
    np.testing.assert_allclose(d.geometry(0.75).coords[:, 1], 0.75)


def test_parametric_curve_needs_two_samples() -> None:
    with pytest.raises(ValueError):
        parametric_curve(lambda u: (u, u), samples=1)
