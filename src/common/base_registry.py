"""
共通レジストリ基底クラス
drawables/ と animations/ の両方で使用する統一されたレジストリシステム。

登録対象は「能力インタフェースを満たす値を返すファクトリ」であり、コア（engine.*）は
レジストリを参照しない。名前解決は api 層でのみ行う。
"""

from __future__ import annotations

import re
from threading import RLock
from typing import Any, Callable


class BaseRegistry:
    """レジストリの基底クラス。

    - 文字列キーは正規化されます（大文字小文字・キャメル→スネークを吸収）。
    - デコレータは名前省略可。省略時はクラス/関数名から自動推論します。
    - `kind` はエラーメッセージ用の種別名（例: "drawable"）。
    """

    def __init__(self, kind: str = "entry") -> None:
        self._kind = kind
        self._registry: dict[str, Any] = {}
        # 登録はインポート時に集中するが、スレッドからの動的登録も許容する
        self._lock = RLock()

    # === 内部ユーティリティ ===
    @staticmethod
    def _camel_to_snake(name: str) -> str:
        s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
        s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
        return s2.lower()

    @classmethod
    def _normalize_key(cls, name: str) -> str:
        """レジストリキーの正規化（例: "EaseInOut" -> "ease_in_out"）。"""
        if not isinstance(name, str):
            raise TypeError("レジストリキーは str である必要があります")
        if not name:
            raise ValueError("レジストリキーは空であってはなりません")
        name = name.replace("-", "_")
        # 大文字を含む場合のみキャメル→スネーク変換
        return cls._camel_to_snake(name) if any(c.isupper() for c in name) else name.lower()

    @property
    def kind(self) -> str:
        return self._kind

    def register(self, name: str | None = None) -> Callable[[Any], Any]:
        """クラス/関数をレジストリに登録するデコレータ。"""

        def decorator(obj: Any) -> Any:
            key = self._normalize_key(name) if name else self._normalize_key(obj.__name__)
            with self._lock:
                if key in self._registry and self._registry[key] is not obj:
                    raise ValueError(f"{self._kind} '{key}' は既に登録されています")
                self._registry[key] = obj
            return obj

        return decorator

    def get(self, name: str) -> Any:
        """登録されたクラス/関数を取得。"""
        key = self._normalize_key(name)
        with self._lock:
            if key not in self._registry:
                raise KeyError(f"{self._kind} '{name}' は登録されていません")
            return self._registry[key]

    def list_all(self) -> list[str]:
        """登録されているすべての名前を取得（未ソート）。"""
        with self._lock:
            return list(self._registry.keys())

    def is_registered(self, name: str) -> bool:
        """指定された名前が登録されているかチェック"""
        with self._lock:
            return self._normalize_key(name) in self._registry

    def unregister(self, name: str) -> None:
        """レジストリから削除（名前が存在しない場合は無視）。"""
        key = self._normalize_key(name)
        with self._lock:
            self._registry.pop(key, None)

    def clear(self) -> None:
        """レジストリをクリア"""
        with self._lock:
            self._registry.clear()

    @property
    def registry(self) -> dict[str, Any]:
        """レジストリの読み取り専用アクセス（コピーを返す）"""
        with self._lock:
            return self._registry.copy()
