from __future__ import annotations

import pytest

from engine.animation.merge import MergePolicy, blend, check_compatible
from engine.core.errors import ConstructionError
from engine.core.geometry import Geometry


def test_coerce() -> None:
    assert MergePolicy.coerce("Additive") is MergePolicy.ADDITIVE
    assert MergePolicy.coerce(MergePolicy.MAX) is MergePolicy.MAX
    with pytest.raises(ConstructionError):
        MergePolicy.coerce(None)
    with pytest.raises(ConstructionError):
        MergePolicy.coerce("average")


def test_blend_scalars_and_tuples() -> None:
    assert blend("override", 1.0, 2.0) == 2.0
    assert blend("additive", 1.0, 2.0) == 3.0
    assert blend("max", 1.0, 2.0) == 2.0
    assert blend("additive", (1.0, 2.0), (3.0, 4.0)) == (4.0, 6.0)
    assert blend("max", (1.0, 5.0), (3.0, 4.0)) == (3.0, 5.0)


def test_blend_geometry(geom_line2: Geometry, geom_two_lines: Geometry) -> None:
    out = blend("additive", geom_line2, geom_two_lines)
    assert out.n_lines == 3
    with pytest.raises(TypeError):
        blend("max", geom_line2, geom_two_lines)


def test_check_compatible_wraps_errors() -> None:
    check_compatible("additive", (1.0, 2.0), (3.0, 4.0))
    with pytest.raises(ConstructionError):
        check_compatible("additive", (1.0, 2.0), (1.0, 2.0, 3.0))
    with pytest.raises(ConstructionError):
        check_compatible("max", 1.0, "x")
