"""
app.core.sounds
~~~~~~~~~~~~~~~

弹幕口令 → 音效映射表。

口令在匹配前统一做去首尾空白 + casefold 处理；数字口令 ``"1".."N"``
自动生成为 ``sounds/{n}.mp3``，再叠加配置中的覆盖项和文字口令。
映射表在进程生命周期内保持不变。
"""
from __future__ import annotations

from collections.abc import Mapping

from app.core.settings import Settings


def normalize_comment(text: str) -> str:
    """弹幕标准化：去除首尾空白并统一大小写。"""
    return text.strip().casefold()


class SoundMapping:
    """只读的口令音效表，外加一个停止口令。"""

    def __init__(self, mapping: Mapping[str, str], stop_keyword: str = "ganti") -> None:
        self._mapping: dict[str, str] = {
            normalize_comment(key): sound for key, sound in mapping.items()
        }
        self.stop_keyword = normalize_comment(stop_keyword)

    @classmethod
    def from_settings(cls, settings: Settings) -> SoundMapping:
        mapping: dict[str, str] = {
            str(n): f"sounds/{n}.mp3" for n in range(1, settings.SOUND_COUNT + 1)
        }
        mapping.update(settings.SOUND_OVERRIDES)
        mapping.update(settings.SOUND_PHRASES)
        return cls(mapping, stop_keyword=settings.STOP_KEYWORD)

    def lookup(self, comment: str) -> str | None:
        """返回弹幕对应的音效路径，未命中返回 ``None``。"""
        return self._mapping.get(normalize_comment(comment))

    def is_stop(self, comment: str) -> bool:
        """弹幕是否为停止口令。"""
        return normalize_comment(comment) == self.stop_keyword

    def __contains__(self, comment: object) -> bool:
        return isinstance(comment, str) and normalize_comment(comment) in self._mapping
