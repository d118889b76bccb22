from __future__ import annotations

import math

import pytest

from engine.animation.combinators import ease, loop, parallel, reverse, sequence, shift
from engine.animation.primitives import Constant, Linear, Parametric
from engine.core.errors import ConstructionError, DomainError
from engine.core.interval import Interval


def test_sequence_concatenates_and_shifts_second() -> None:
    a = Linear(0.0, 1.0, 1.0)
    b = Linear(10.0, 20.0, 2.0, start=5.0)  # b は a.end から始まるよう平行移動される
    s = sequence(a, b)
    assert s.domain == Interval(0.0, 3.0)
    assert s.at(0.5) == pytest.approx(0.5)
    assert s.at(1.0) == 1.0  # 境界は a に属する
    assert s.at(2.0) == pytest.approx(15.0)
    assert s.at(3.0) == 20.0


def test_sequence_variadic() -> None:
    s = sequence(Constant(1.0, 1.0), Constant(2.0, 1.0), Constant(3.0, 1.0))
    assert [s.at(t) for t in (0.5, 1.5, 2.5)] == [1.0, 2.0, 3.0]
    assert s.end == 3.0


def test_sequence_after_unbounded_is_rejected_at_construction() -> None:
    with pytest.raises(ConstructionError):
        sequence(Constant(1.0), Linear(0.0, 1.0, 1.0))
    with pytest.raises(ConstructionError):
        sequence(Linear(0.0, 1.0, 1.0), 3.0)  # type: ignore[arg-type]


def test_parallel_requires_merge_and_overlap() -> None:
    a = Linear(0.0, 1.0, 2.0)
    b = Constant(10.0, 1.0, start=0.5)
    with pytest.raises(ConstructionError):
        parallel(a, b, None)
    with pytest.raises(ConstructionError):
        parallel(a, Constant(1.0, 1.0, start=5.0), "additive")
    p = parallel(a, b, "additive")
    assert p.domain == Interval(0.0, 2.0)
    assert p.at(0.25) == pytest.approx(0.125)  # a のみ
    assert p.at(1.0) == pytest.approx(10.5)
    assert p.at(2.0) == pytest.approx(1.0)


def test_parallel_rejects_incompatible_values() -> None:
    with pytest.raises(ConstructionError):
        parallel(Constant((0.0, 0.0), 1.0), Constant(1.0, 1.0), "additive")


def test_ease_reparameterizes_time() -> None:
    a = ease(Linear(0.0, 1.0, 2.0), lambda u: u * u)
    assert a.domain == Interval(0.0, 2.0)
    assert a.at(1.0) == pytest.approx(0.25)
    assert a.at(2.0) == 1.0


def test_ease_rejects_bad_curves() -> None:
    base = Linear(0.0, 1.0, 1.0)
    with pytest.raises(ConstructionError):
        ease(base, lambda u: 1.0 - u)  # 端点が合わない
    with pytest.raises(ConstructionError):
        ease(base, lambda u: math.sin(u * 3 * math.pi / 2) if u < 1.0 else 1.0)  # 非単調
    with pytest.raises(ConstructionError):
        ease(Constant(1.0), lambda u: u)  # 非有界


def test_loop_finite_and_infinite() -> None:
    a = Linear(0.0, 1.0, 0.5)
    l3 = loop(a, 3)
    assert l3.domain == Interval(0.0, 1.5)
    assert l3.at(0.25) == pytest.approx(0.5)
    assert l3.at(0.5) == 0.0  # 周回の先頭
    assert l3.at(0.75) == pytest.approx(0.5)
    assert l3.at(1.5) == 1.0  # 有限ループの終端は a(a.end)
    inf = loop(a)
    assert not inf.is_bounded
    assert inf.at(100.25) == pytest.approx(0.5)


def test_loop_keeps_values_just_before_the_end_of_long_cycles() -> None:
    ident = Parametric(lambda x: x, Interval(0.0, 1e6))
    l2 = loop(ident, 2)
    t = 2e6 - 1e-4
    assert l2.at(t) < 1e6
    assert l2.at(t) == pytest.approx(1e6 - 1e-4, abs=1e-6)
    assert l2.at(2e6) == 1e6
    # 周期の境界は丸め誤差があっても次の周期の先頭になる
    steps = loop(Linear(0.0, 1.0, 0.1))
    assert steps.at(3.0) == pytest.approx(0.0, abs=1e-9)


def test_loop_rejects_bad_input() -> None:
    with pytest.raises(ConstructionError):
        loop(Constant(1.0))
    with pytest.raises(ConstructionError):
        loop(Constant(1.0, 0.0))
    with pytest.raises(ConstructionError):
        loop(Linear(0.0, 1.0, 1.0), 0)
    with pytest.raises(ConstructionError):
        loop(Linear(0.0, 1.0, 1.0), 1.5)  # type: ignore[arg-type]


def test_reverse_mirrors_time() -> None:
    a = Linear(0.0, 10.0, 2.0, start=1.0)
    r = reverse(a)
    assert r.domain == a.domain
    assert r.at(1.0) == 10.0
    assert r.at(3.0) == 0.0
    assert r.at(1.5) == pytest.approx(7.5)
    assert reverse(r) is a
    with pytest.raises(ConstructionError):
        reverse(Parametric(lambda t: t))


def test_shift_moves_domain() -> None:
    a = Linear(0.0, 1.0, 1.0)
    s = shift(a, 2.0)
    assert s.domain == Interval(2.0, 3.0)
    assert s.at(2.5) == pytest.approx(0.5)
    with pytest.raises(DomainError):
        s.at(1.0)
    assert shift(a, 0.0) is a


def test_combinators_evaluate_outside_domain_as_domain_error() -> None:
    s = sequence(Linear(0.0, 1.0, 1.0), Linear(1.0, 2.0, 1.0))
    with pytest.raises(DomainError):
        s.at(2.5)
