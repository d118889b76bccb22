"""
どこで: `engine.runtime` サブパッケージ。
何を: 時刻サンプル列の並列評価・描画スケジューラと、その入出力の値型（Frame/JobReport/コレクタ）。
なぜ: サンプル単位の失敗局所化と時刻昇順の出力を、評価/描画の実装から切り離して保証するため。
"""

from .collector import InMemoryCollector, OutputCollector
from .frame import Frame
from .report import JobReport, SampleFailure, SampleId
from .scheduler import FrameScheduler, RenderJob
from .task import SampleTask, make_tasks

__all__ = [
    "Frame",
    "FrameScheduler",
    "InMemoryCollector",
    "JobReport",
    "OutputCollector",
    "RenderJob",
    "SampleFailure",
    "SampleId",
    "SampleTask",
    "make_tasks",
]
