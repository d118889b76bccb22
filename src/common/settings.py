"""
どこで: `common.settings`
何を: プロジェクトの環境変数を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_int, env_str


@dataclass
class _Settings:
    # 評価キャッシュ
    CACHE_ENABLED: bool = True
    CACHE_NODE_CAPACITY: int = 256

    # Frame Scheduler
    SCHEDULER_WORKERS: int = 4
    SCHEDULER_MAX_IN_FLIGHT: int = 8

    # 時間軸
    DEFAULT_FPS: int = 30

    # Combinator 構築時検査
    EASE_CHECK_SAMPLES: int = 65

    # Misc
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - bool は `env_bool`、int は `env_int` を使用。
    - 一部は下限丸めやフォールバックを適用。
    """
    _settings.CACHE_ENABLED = env_bool("PXA_CACHE_ENABLED", True)
    _settings.CACHE_NODE_CAPACITY = env_int("PXA_CACHE_NODE_CAPACITY", 256, min_value=0) or 0

    # workers < 1 はインライン実行の意味なので下限丸めしない
    workers = env_int("PXA_SCHEDULER_WORKERS", 4)
    _settings.SCHEDULER_WORKERS = 4 if workers is None else workers
    _settings.SCHEDULER_MAX_IN_FLIGHT = (
        env_int("PXA_SCHEDULER_MAX_IN_FLIGHT", 8, min_value=1) or 1
    )

    _settings.DEFAULT_FPS = env_int("PXA_DEFAULT_FPS", 30, min_value=1) or 30
    _settings.EASE_CHECK_SAMPLES = env_int("PXA_EASE_CHECK_SAMPLES", 65, min_value=2) or 65

    _settings.LOG_LEVEL = env_str("PXA_LOG_LEVEL", "INFO").upper()


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
