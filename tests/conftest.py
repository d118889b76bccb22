"""共通フィクスチャ。

- 乱数シード固定
- 小さな Geometry 試料
- 設定（環境変数）の隔離
- 小さなシーン（`tests._utils.scenes`）
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from common import settings as settings_mod
from engine.core.geometry import Geometry
from engine.scene.scene import Scene
from tests._utils.scenes import make_line_scene


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """テストごとに PXA_* を既定へ戻す（テスト内の setenv は終了時に巻き戻る）。"""
    import os

    for key in list(os.environ):
        if key.startswith("PXA_"):
            monkeypatch.delenv(key, raising=False)
    settings_mod.reload_from_env()
    yield
    monkeypatch.undo()
    settings_mod.reload_from_env()


@pytest.fixture()
def geom_empty() -> Geometry:
    return Geometry.from_lines([])


@pytest.fixture()
def geom_line2() -> Geometry:
    pts = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]], dtype=np.float32)
    return Geometry.from_lines([pts])


@pytest.fixture()
def geom_two_lines() -> Geometry:
    a = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]], dtype=np.float32)
    b = np.array([[0.0, 1.0, 0.0], [1.0, 1.0, 0.0], [2.0, 1.0, 0.0]], dtype=np.float32)
    return Geometry.from_lines([a, b])


@pytest.fixture()
def line_scene() -> tuple[Scene, dict[str, object]]:
    return make_line_scene()
