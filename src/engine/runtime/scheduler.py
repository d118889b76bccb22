"""
どこで: `engine.runtime` のフレームスケジューラ。
何を: 時刻サンプル列を評価（Evaluator）→ 描画（Renderer）へ並列に流し、完了順に関係なく
      時刻昇順で出力先（OutputCollector）へ引き渡す。失敗はサンプル単位の値として `JobReport` に集約する。
なぜ: 独立なサンプルを並列に処理しつつ、出力順序・失敗の局所化・キャンセル・背圧を一箇所で保証するため。

実行モデル:
- ワーカは `ThreadPoolExecutor`（評価キャッシュをスレッド間で共有する）。`num_workers < 1` はインライン実行。
- 投入は専用のディスパッチスレッドが行い、`max_in_flight` の BoundedSemaphore で同時投入数を制限する。
- レンダラの戻り値が Future/awaitable の場合はワーカ内で完了を待つ。
  `thread_safe = False` を宣言したレンダラは投入をロックで直列化する。
- 再整列バッファ: `(t, index)` 昇順の並びで先頭から確定したものを順次コレクタへ渡す。
  失敗/キャンセルされたサンプルは飛ばす。
- `FatalBackendError` はジョブを中断する（以降の投入停止、コレクタへ abort、`report.fatal` に記録）。
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Iterable

from common.settings import get as _get_settings
from common.types import FrameSize
from engine.core.diagnostics import BACKEND_ERROR, CACHE_STATS, EVALUATION_ERROR, Diagnostics
from engine.core.errors import DomainError, EvaluationError, FatalBackendError
from engine.core.interval import Interval
from engine.core.timestamp import frame_times
from engine.evaluate.evaluator import Evaluator
from engine.render.types import Renderer, is_thread_safe
from engine.scene.scene import Scene

from .collector import OutputCollector
from .frame import Frame
from .report import JobReport, SampleFailure, SampleId
from .task import SampleTask, make_tasks

logger = logging.getLogger(__name__)

_OK = "ok"
_FAILED = "failed"
_CANCELLED = "cancelled"


async def _await(awaitable: Any) -> Any:
    return await awaitable


def _resolve_pixels(result: Any) -> Any:
    """レンダラの戻り値（バッファ/Future/awaitable）を確定値にする。"""
    if isinstance(result, Future):
        return result.result()
    if inspect.isawaitable(result):
        return asyncio.run(_await(result))
    return result


class RenderJob:
    """1 回の `submit` に対応するジョブ。`wait()` で `JobReport` を得る。"""

    def __init__(
        self,
        scheduler: "FrameScheduler",
        scene: Scene,
        tasks: list[SampleTask],
        collector: OutputCollector | None,
    ) -> None:
        self._scheduler = scheduler
        self._scene = scene
        self._tasks = tasks
        self._collector = collector
        self._order = sorted(tasks, key=lambda task: task.order_key)
        self._next = 0
        self._outcomes: dict[int, tuple[str, Any]] = {}
        self._cancel_requested: set[int] = set()
        self._in_flight: set[int] = set()
        self._lock = threading.RLock()
        self._abort = threading.Event()
        self._done = threading.Event()
        self._fatal: BaseException | None = None
        self._report: JobReport | None = None
        self._slots = threading.BoundedSemaphore(scheduler.max_in_flight)
        self._dispatcher: threading.Thread | None = None

    # ---- 公開 API ----
    @property
    def scene(self) -> Scene:
        return self._scene

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self, sample_ids: Iterable[int] | None = None) -> None:
        """サンプル ID（要求列内の位置）を指定してキャンセルする。None は未確定の全サンプル。

        未投入のサンプルは投入されない。実行中のサンプルは完了まで走らせ、結果を破棄する。
        """
        with self._lock:
            ids = {t.index for t in self._tasks} if sample_ids is None else {int(i) for i in sample_ids}
            self._cancel_requested |= ids - set(self._outcomes)
        logger.debug("[scheduler] cancel requested samples=%s", sorted(ids))

    def wait(self, timeout: float | None = None) -> JobReport:
        if not self._done.wait(timeout):
            raise TimeoutError(f"render job did not finish within {timeout} seconds")
        assert self._report is not None
        return self._report

    result = wait

    # ---- 実行 ----
    def _start(self) -> None:
        if not self._tasks:
            self._finalize()
            return
        if self._scheduler.inline:
            self._run_inline()
        else:
            self._dispatcher = threading.Thread(
                target=self._dispatch, name="FrameDispatcher", daemon=True
            )
            self._dispatcher.start()

    def _should_skip(self, task: SampleTask) -> bool:
        with self._lock:
            return self._abort.is_set() or task.index in self._cancel_requested

    def _run_inline(self) -> None:
        for task in self._tasks:
            if self._should_skip(task):
                self._record(task, _CANCELLED, None)
                continue
            self._on_result(task, self._scheduler._execute_sample(self._scene, task))

    def _dispatch(self) -> None:
        pool = self._scheduler._pool
        assert pool is not None
        for task in self._tasks:
            if self._should_skip(task):
                self._record(task, _CANCELLED, None)
                continue
            # 背圧: 空きスロットができるまで待つ（中断は定期的に確認）
            while not self._slots.acquire(timeout=0.05):
                if self._abort.is_set():
                    break
            else:
                if self._should_skip(task):
                    self._slots.release()
                    self._record(task, _CANCELLED, None)
                    continue
                with self._lock:
                    self._in_flight.add(task.index)
                try:
                    fut = pool.submit(self._scheduler._execute_sample, self._scene, task)
                except RuntimeError as e:
                    # プールが閉じられた
                    self._slots.release()
                    self._record_fatal(FatalBackendError(f"worker pool unavailable: {e}"))
                    self._record(task, _CANCELLED, None)
                    continue
                fut.add_done_callback(lambda f, task=task: self._on_future(task, f))
                continue
            self._record(task, _CANCELLED, None)

    def _on_future(self, task: SampleTask, fut: Future) -> None:
        self._slots.release()
        exc = fut.exception()
        if exc is not None:
            # _execute_sample は例外を値で返すため通常は到達しない
            logger.error("[scheduler] stage=worker sample=%d t=%s error=%r", task.index, task.t, exc)
            result: tuple[Frame | None, SampleFailure | None, BaseException | None] = (
                None,
                SampleFailure(task.index, task.t, EvaluationError(t=task.t, cause=exc), stage="worker"),
                None,
            )
        else:
            result = fut.result()
        self._on_result(task, result)

    def _on_result(
        self,
        task: SampleTask,
        result: tuple[Frame | None, SampleFailure | None, BaseException | None],
    ) -> None:
        frame, failure, fatal = result
        if fatal is not None:
            self._record_fatal(fatal)
            self._record(task, _CANCELLED, None)
            return
        with self._lock:
            discard = self._abort.is_set() or task.index in self._cancel_requested
        if discard:
            self._record(task, _CANCELLED, None)
        elif failure is not None:
            diag = self._scheduler.diagnostics
            if diag is not None:
                diag.emit(
                    EVALUATION_ERROR,
                    str(failure.error),
                    t=task.t,
                    handle=getattr(failure.error, "handle", None),
                    sample=task.index,
                    stage=failure.stage,
                )
            self._record(task, _FAILED, failure)
        else:
            self._record(task, _OK, frame)

    def _record_fatal(self, exc: BaseException) -> None:
        with self._lock:
            first = self._fatal is None
            if first:
                self._fatal = exc
                self._abort.set()
        if not first:
            return
        logger.error("[scheduler] stage=backend fatal error, aborting job: %s", exc)
        diag = self._scheduler.diagnostics
        if diag is not None:
            diag.emit(BACKEND_ERROR, str(exc))
        abort = getattr(self._collector, "abort", None)
        if callable(abort):
            try:
                abort(exc)
            except Exception:
                logger.exception("[scheduler] stage=collector_abort failed")

    def _record(self, task: SampleTask, kind: str, payload: Any) -> None:
        with self._lock:
            self._in_flight.discard(task.index)
            if task.index in self._outcomes:
                return
            self._outcomes[task.index] = (kind, payload)
            self._deliver()
            finished = len(self._outcomes) == len(self._tasks)
        if finished:
            self._finalize()

    def _deliver(self) -> None:
        """再整列バッファの先頭から確定済みの Frame を昇順に渡す（ロック保持中に呼ぶ）。"""
        while self._next < len(self._order):
            task = self._order[self._next]
            outcome = self._outcomes.get(task.index)
            if outcome is None:
                return
            self._next += 1
            kind, payload = outcome
            if kind != _OK or self._collector is None or self._abort.is_set():
                continue
            try:
                self._collector.accept(payload)
            except Exception as e:
                logger.exception("[scheduler] stage=collector sample=%d t=%s", task.index, task.t)
                self._record_fatal(FatalBackendError(f"output collector failed: {e!r}"))

    def _finalize(self) -> None:
        with self._lock:
            if self._report is not None:
                return
            succeeded: list[SampleId] = []
            failed: list[SampleFailure] = []
            cancelled: list[SampleId] = []
            for task in self._tasks:
                kind, payload = self._outcomes.get(task.index, (_CANCELLED, None))
                if kind == _OK:
                    succeeded.append(SampleId(task.index, task.t))
                elif kind == _FAILED:
                    failed.append(payload)
                else:
                    cancelled.append(SampleId(task.index, task.t))
            stats = self._scene.cache.stats().as_dict()
            self._report = JobReport(
                succeeded=tuple(succeeded),
                failed=tuple(failed),
                cancelled=tuple(cancelled),
                fatal=self._fatal,
                cache_stats=stats,
            )
            fatal = self._fatal
        diag = self._scheduler.diagnostics
        if diag is not None:
            diag.emit(CACHE_STATS, "render job finished", **stats)
        if fatal is None:
            close = getattr(self._collector, "close", None)
            if callable(close):
                try:
                    close()
                except Exception:
                    logger.exception("[scheduler] stage=collector_close failed")
        logger.debug(
            "[scheduler] job finished ok=%d failed=%d cancelled=%d",
            len(self._report.succeeded),
            len(self._report.failed),
            len(self._report.cancelled),
        )
        self._done.set()


class FrameScheduler:
    """時刻サンプル列を並列に評価・描画し、時刻昇順で出力するスケジューラ。

    Parameters
    ----------
    renderer : Renderer
        `render(geometries, transforms, styles, frame_size)` を持つ外部レンダラ。
    frame_size : (width, height), optional
        省略時はシーンの `frame_size`。
    evaluator : Evaluator, optional
    num_workers : int, optional
        ワーカスレッド数。`< 1` でインライン実行。None は設定値 `PXA_SCHEDULER_WORKERS`。
    max_in_flight : int, optional
        同時投入サンプル数の上限。None は設定値 `PXA_SCHEDULER_MAX_IN_FLIGHT`。
    diagnostics : Diagnostics, optional
        評価/バックエンド失敗とキャッシュ統計の送り先。
    """

    def __init__(
        self,
        renderer: Renderer,
        frame_size: FrameSize | None = None,
        *,
        evaluator: Evaluator | None = None,
        num_workers: int | None = None,
        max_in_flight: int | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        s = _get_settings()
        if not callable(getattr(renderer, "render", None)):
            raise TypeError("renderer must provide render(geometries, transforms, styles, frame_size)")
        self._renderer = renderer
        self._frame_size = frame_size
        self._diagnostics = diagnostics
        self._evaluator = evaluator if evaluator is not None else Evaluator(diagnostics=diagnostics)
        workers = s.SCHEDULER_WORKERS if num_workers is None else int(num_workers)
        self._max_in_flight = max(1, int(s.SCHEDULER_MAX_IN_FLIGHT if max_in_flight is None else max_in_flight))
        self._inline = workers < 1
        self._pool: ThreadPoolExecutor | None = (
            None if self._inline else ThreadPoolExecutor(max_workers=workers, thread_name_prefix="FrameWorker")
        )
        self._render_lock: threading.Lock | None = (
            None if is_thread_safe(renderer) else threading.Lock()
        )
        # 冪等な close() のための内部フラグ
        self._closed = False
        self._close_lock = threading.Lock()

    @property
    def inline(self) -> bool:
        return self._inline

    @property
    def max_in_flight(self) -> int:
        return self._max_in_flight

    @property
    def diagnostics(self) -> Diagnostics | None:
        return self._diagnostics

    @property
    def evaluator(self) -> Evaluator:
        return self._evaluator

    # ---- 1 サンプルの実行（ワーカ内） ----
    def _execute_sample(
        self, scene: Scene, task: SampleTask
    ) -> tuple[Frame | None, SampleFailure | None, BaseException | None]:
        """評価→描画→完了待ちを行い `(frame, failure, fatal)` を返す。例外は値として返す。"""
        try:
            state = self._evaluator.evaluate(scene, task.t)
        except (EvaluationError, DomainError) as e:
            logger.warning("[scheduler] stage=evaluate sample=%d t=%s error=%s", task.index, task.t, e)
            return None, SampleFailure(task.index, task.t, e, stage="evaluate"), None
        except Exception as e:
            logger.exception("[scheduler] stage=evaluate sample=%d t=%s error=%s", task.index, task.t, e)
            err = EvaluationError(t=task.t, cause=e)
            return None, SampleFailure(task.index, task.t, err, stage="evaluate"), None

        geometries, transforms, styles = state.renderer_inputs()
        frame_size = self._frame_size if self._frame_size is not None else scene.frame_size
        try:
            if self._render_lock is not None:
                with self._render_lock:
                    submitted = self._renderer.render(geometries, transforms, styles, frame_size)
            else:
                submitted = self._renderer.render(geometries, transforms, styles, frame_size)
            pixels = _resolve_pixels(submitted)
        except FatalBackendError as e:
            return None, None, e
        except Exception as e:
            logger.exception("[scheduler] stage=render sample=%d t=%s error=%s", task.index, task.t, e)
            err = EvaluationError(f"render submission failed (t={task.t!r}): {e!r}", t=task.t, cause=e)
            return None, SampleFailure(task.index, task.t, err, stage="render"), None
        return Frame(task.index, task.t, pixels, state), None, None

    # ---- 公開 API ----
    def submit(
        self,
        scene: Scene,
        samples: Iterable[float] | Interval,
        collector: OutputCollector | None = None,
    ) -> RenderJob:
        """サンプル列のジョブを開始する（インライン実行時は完了してから返る）。

        `samples` に Interval を渡すとシーンの fps で刻んだ密な時刻列になる。
        """
        if self._closed:
            raise RuntimeError("scheduler is closed")
        if isinstance(samples, Interval):
            samples = frame_times(samples.start, samples.end, fps=scene.fps)
        job = RenderJob(self, scene, make_tasks(samples), collector)
        job._start()
        return job

    def render(
        self,
        scene: Scene,
        samples: Iterable[float] | Interval,
        collector: OutputCollector | None = None,
        *,
        timeout: float | None = None,
    ) -> JobReport:
        """`submit` して完了を待つ。"""
        return self.submit(scene, samples, collector).wait(timeout)

    def close(self) -> None:
        """ワーカプールを停止する（多重呼び出しに安全）。"""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        if self._pool is not None:
            self._pool.shutdown(wait=True)

    def __enter__(self) -> "FrameScheduler":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


__all__ = ["FrameScheduler", "RenderJob"]
