"""FrameScheduler: 出力順序・部分失敗・キャンセル・背圧・致命エラー・非同期投入。"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future

import pytest

from engine.core.diagnostics import BACKEND_ERROR, EVALUATION_ERROR, Diagnostics
from engine.core.drawable import StaticDrawable
from engine.core.errors import EvaluationError, FatalBackendError
from engine.core.geometry import Geometry
from engine.core.interval import Interval
from engine.runtime import FrameScheduler, InMemoryCollector
from engine.scene.builder import SceneBuilder
from tests._utils.scenes import RecordingRenderer

TIMES = [i / 10 for i in range(6)]


def _x(geometries, transforms) -> float:
    for g, xf in zip(geometries, transforms):
        if not g.is_empty:
            return float(xf.apply_points(g.coords)[0, 0])
    return float("nan")


class SlowEarlyRenderer:
    """早い時刻ほど長く待つ（完了順を要求順と逆にする）。"""

    def render(self, geometries, transforms, styles, frame_size):
        x = _x(geometries, transforms)
        time.sleep(max(0.0, 0.05 - x * 0.01))
        return x


class FailingAtRenderer:
    def __init__(self, bad_x: float, exc: type[BaseException] = ValueError) -> None:
        self.bad_x = bad_x
        self.exc = exc

    def render(self, geometries, transforms, styles, frame_size):
        x = _x(geometries, transforms)
        if abs(x - self.bad_x) < 1e-6:
            raise self.exc(f"cannot draw x={x}")
        return x


class GatedRenderer:
    """`release` がセットされるまで描画を止める。"""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()

    def render(self, geometries, transforms, styles, frame_size):
        self.started.set()
        self.release.wait(5.0)
        return _x(geometries, transforms)


class ConcurrencyProbe:
    def __init__(self, *, thread_safe: bool = True) -> None:
        self.thread_safe = thread_safe
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def render(self, geometries, transforms, styles, frame_size):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.01)
        with self._lock:
            self.active -= 1
        return _x(geometries, transforms)


class FatalOnCall:
    def __init__(self, n: int) -> None:
        self.n = n
        self.calls = 0
        self._lock = threading.Lock()

    def render(self, geometries, transforms, styles, frame_size):
        with self._lock:
            self.calls += 1
            call = self.calls
        if call == self.n:
            raise FatalBackendError("device lost")
        return _x(geometries, transforms)


def test_frames_are_delivered_in_time_order(line_scene) -> None:
    scene, _ = line_scene
    col = InMemoryCollector()
    with FrameScheduler(SlowEarlyRenderer(), num_workers=4) as sched:
        report = sched.render(scene, [0.5, 0.1, 0.3], col, timeout=10.0)
    assert report.ok
    assert col.times == [0.1, 0.3, 0.5]
    assert [f.sample_index for f in col.frames] == [1, 2, 0]
    assert [f.pixels for f in col.frames] == pytest.approx([1.0, 3.0, 5.0])
    assert col.closed is True
    assert report.succeeded_times() == [0.1, 0.3, 0.5]


def test_duplicate_times_keep_request_order(line_scene) -> None:
    scene, _ = line_scene
    col = InMemoryCollector()
    with FrameScheduler(RecordingRenderer(), num_workers=2) as sched:
        sched.render(scene, [0.2, 0.2, 0.1], col, timeout=10.0)
    assert [(f.t, f.sample_index) for f in col.frames] == [(0.1, 2), (0.2, 0), (0.2, 1)]


@pytest.mark.parametrize("workers", [0, 1, 4])
def test_results_do_not_depend_on_worker_count(line_scene, workers: int) -> None:
    scene, _ = line_scene
    col = InMemoryCollector()
    with FrameScheduler(RecordingRenderer(), num_workers=workers) as sched:
        sched.render(scene, TIMES, col, timeout=10.0)
    assert [f.pixels for f in col.frames] == pytest.approx([10 * t for t in TIMES])


def test_render_failure_is_local_to_one_sample(line_scene) -> None:
    scene, _ = line_scene
    diag = Diagnostics()
    col = InMemoryCollector()
    with FrameScheduler(FailingAtRenderer(3.0), num_workers=3, diagnostics=diag) as sched:
        report = sched.render(scene, TIMES, col, timeout=10.0)
    assert report.fatal is None
    assert len(report.succeeded) == len(TIMES) - 1
    assert len(report.failed) == 1
    failure = report.failed[0]
    assert failure.t == pytest.approx(0.3)
    assert failure.stage == "render"
    assert isinstance(failure.error, EvaluationError)
    assert report.failed_times() == [failure.t]
    assert col.times == [t for t in TIMES if t != failure.t]
    assert len(diag.events(EVALUATION_ERROR)) == 1
    assert not report.ok


def test_required_node_failure_is_an_evaluate_stage_failure() -> None:
    sb = SceneBuilder(duration=1.0, frame_size=(8, 8))
    sb.add(
        StaticDrawable(Geometry.from_lines([[[0.0, 0.0], [1.0, 0.0]]]), validity=Interval(0.0, 0.5)),
        name="partial",
        required=True,
    )
    scene = sb.build()
    col = InMemoryCollector()
    with FrameScheduler(RecordingRenderer(), num_workers=2) as sched:
        report = sched.render(scene, [0.25, 0.75], col, timeout=10.0)
    assert [f.t for f in report.failed] == [0.75]
    assert report.failed[0].stage == "evaluate"
    assert col.times == [0.25]


def test_failed_samples_can_be_rerendered(line_scene) -> None:
    scene, _ = line_scene
    with FrameScheduler(FailingAtRenderer(2.0), num_workers=2) as sched:
        report = sched.render(scene, TIMES, timeout=10.0)
    col = InMemoryCollector()
    with FrameScheduler(RecordingRenderer(), num_workers=2) as sched:
        retry = sched.render(scene, report.failed_times(), col, timeout=10.0)
    assert retry.ok
    assert col.times == pytest.approx([0.2])


def test_cancel_selected_samples(line_scene) -> None:
    scene, _ = line_scene
    renderer = GatedRenderer()
    col = InMemoryCollector()
    times = [i / 10 for i in range(10)]
    with FrameScheduler(renderer, num_workers=1, max_in_flight=1) as sched:
        job = sched.submit(scene, times, col)
        assert renderer.started.wait(5.0)
        job.cancel([5, 6, 7])
        renderer.release.set()
        report = job.wait(10.0)
    assert sorted(s.index for s in report.cancelled) == [5, 6, 7]
    assert len(report.succeeded) == 7
    assert col.times == [t for i, t in enumerate(times) if i not in (5, 6, 7)]


def test_cancel_all_discards_in_flight_results(line_scene) -> None:
    scene, _ = line_scene
    renderer = GatedRenderer()
    col = InMemoryCollector()
    with FrameScheduler(renderer, num_workers=1, max_in_flight=1) as sched:
        job = sched.submit(scene, TIMES, col)
        assert renderer.started.wait(5.0)
        job.cancel()
        renderer.release.set()
        report = job.wait(10.0)
    assert report.succeeded == ()
    assert len(report.cancelled) == len(TIMES)
    assert len(col) == 0
    assert col.closed is True


def test_max_in_flight_bounds_concurrency(line_scene) -> None:
    scene, _ = line_scene
    probe = ConcurrencyProbe()
    times = [i / 20 for i in range(21)]
    with FrameScheduler(probe, num_workers=6, max_in_flight=2) as sched:
        report = sched.render(scene, times, timeout=20.0)
    assert report.ok
    assert 1 <= probe.peak <= 2


def test_thread_unsafe_renderer_is_serialized(line_scene) -> None:
    scene, _ = line_scene
    probe = ConcurrencyProbe(thread_safe=False)
    with FrameScheduler(probe, num_workers=4, max_in_flight=4) as sched:
        assert sched.render(scene, TIMES, timeout=10.0).ok
    assert probe.peak == 1


def test_fatal_backend_error_aborts_job(line_scene) -> None:
    scene, _ = line_scene
    diag = Diagnostics()
    col = InMemoryCollector()
    with FrameScheduler(FatalOnCall(3), num_workers=1, max_in_flight=1, diagnostics=diag) as sched:
        report = sched.render(scene, TIMES, col, timeout=10.0)
    assert isinstance(report.fatal, FatalBackendError)
    assert col.aborted is report.fatal
    assert col.closed is False
    assert col.times == TIMES[:2]
    assert len(report.succeeded) == 2
    assert len(report.cancelled) == len(TIMES) - 2
    assert report.total == len(TIMES)
    assert len(diag.events(BACKEND_ERROR)) == 1


def test_collector_failure_is_fatal(line_scene) -> None:
    scene, _ = line_scene

    class Broken(InMemoryCollector):
        def accept(self, frame):
            raise OSError("disk full")

    col = Broken()
    with FrameScheduler(RecordingRenderer(), num_workers=0) as sched:
        report = sched.render(scene, TIMES, col)
    assert isinstance(report.fatal, FatalBackendError)
    assert "disk full" in str(report.fatal)
    assert col.aborted is report.fatal


def test_inline_mode_completes_before_returning(line_scene) -> None:
    scene, _ = line_scene
    col = InMemoryCollector()
    sched = FrameScheduler(RecordingRenderer(), num_workers=0)
    assert sched.inline
    job = sched.submit(scene, TIMES, col)
    assert job.done
    assert job.wait(0).ok
    assert len(col) == len(TIMES)
    sched.close()


def test_workers_default_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    from common import settings

    monkeypatch.setenv("PXA_SCHEDULER_WORKERS", "0")
    monkeypatch.setenv("PXA_SCHEDULER_MAX_IN_FLIGHT", "3")
    settings.reload_from_env()
    sched = FrameScheduler(RecordingRenderer())
    assert sched.inline
    assert sched.max_in_flight == 3
    sched.close()


def test_future_and_awaitable_results_are_resolved(line_scene) -> None:
    scene, _ = line_scene

    class FutureRenderer:
        def render(self, geometries, transforms, styles, frame_size):
            fut: Future = Future()
            fut.set_result(_x(geometries, transforms))
            return fut

    class AsyncRenderer:
        def render(self, geometries, transforms, styles, frame_size):
            x = _x(geometries, transforms)

            async def submit() -> float:
                return x

            return submit()

    for renderer in (FutureRenderer(), AsyncRenderer()):
        col = InMemoryCollector()
        with FrameScheduler(renderer, num_workers=2) as sched:
            assert sched.render(scene, [0.2, 0.4], col, timeout=10.0).ok
        assert [f.pixels for f in col.frames] == pytest.approx([2.0, 4.0])


def test_interval_samples_use_scene_fps(line_scene) -> None:
    scene, _ = line_scene
    col = InMemoryCollector()
    with FrameScheduler(RecordingRenderer(), num_workers=2) as sched:
        report = sched.render(scene, Interval(0.0, 1.0), col, timeout=10.0)
    assert report.total == 11
    assert col.times == pytest.approx([i / 10 for i in range(11)])


def test_interval_samples_stay_inside_an_offset_range(line_scene) -> None:
    scene, _ = line_scene
    sub = scene.with_time_range(0.1, 0.3)
    col = InMemoryCollector()
    with FrameScheduler(RecordingRenderer(), num_workers=2) as sched:
        report = sched.render(sub, Interval(0.1, 0.3), col, timeout=10.0)
    assert report.ok, report.failed
    assert len(col.frames) == 3
    assert col.times[-1] == 0.3


def test_frame_size_override_and_state(line_scene) -> None:
    scene, h = line_scene
    renderer = RecordingRenderer()
    col = InMemoryCollector()
    with FrameScheduler(renderer, frame_size=(64, 48), num_workers=0) as sched:
        sched.render(scene, [0.5], col)
    assert renderer.calls[0][1] == (64, 48)
    frame = col.frames[0]
    assert frame.state is not None
    assert frame.state.item(h["line"]).valid


def test_report_carries_cache_stats(line_scene) -> None:
    scene, _ = line_scene
    with FrameScheduler(RecordingRenderer(), num_workers=2) as sched:
        report = sched.render(scene, TIMES + TIMES, timeout=10.0)
    assert set(report.cache_stats) >= {"hits", "misses", "evictions"}
    assert report.cache_stats["hits"] > 0


def test_wait_timeout(line_scene) -> None:
    scene, _ = line_scene
    renderer = GatedRenderer()
    with FrameScheduler(renderer, num_workers=1) as sched:
        job = sched.submit(scene, [0.1])
        with pytest.raises(TimeoutError):
            job.wait(0.01)
        renderer.release.set()
        assert job.wait(10.0).ok


def test_empty_and_invalid_requests(line_scene) -> None:
    scene, _ = line_scene
    col = InMemoryCollector()
    with FrameScheduler(RecordingRenderer(), num_workers=2) as sched:
        report = sched.render(scene, [], col, timeout=1.0)
        assert report.total == 0 and report.ok
        assert col.closed
        with pytest.raises(ValueError):
            sched.submit(scene, [0.0, float("nan")])


def test_close_is_idempotent_and_blocks_submit(line_scene) -> None:
    scene, _ = line_scene
    sched = FrameScheduler(RecordingRenderer(), num_workers=1)
    sched.close()
    sched.close()
    with pytest.raises(RuntimeError):
        sched.submit(scene, [0.0])


def test_renderer_without_render_is_rejected() -> None:
    with pytest.raises(TypeError):
        FrameScheduler(object())  # type: ignore[arg-type]
