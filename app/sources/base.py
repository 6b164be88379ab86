"""
app.sources.base
~~~~~~~~~~~~~~~~

直播事件源抽象基类。

具体平台（目前是 TikTok）的实现负责建立推送连接，并把平台事件
转换为 ``LiveEvent`` 模型后交给回调，回调在事件循环线程内同步执行。
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from app.schemas.live_events import LiveEvent

EventCallback = Callable[[LiveEvent], None]
SourceFactory = Callable[[str, EventCallback], "LiveEventSource"]


class LiveEventSource(ABC):
    """直播事件源。

    Attributes:
        username: 要连接的主播用户名。
        on_event: 收到事件时调用的回调。
    """

    def __init__(self, username: str, on_event: EventCallback) -> None:
        self.username = username
        self.on_event = on_event

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """平台名称（如 ``tiktok``）。"""

    @abstractmethod
    async def start(self) -> None:
        """建立连接。成功后返回，失败时抛出异常。"""

    @abstractmethod
    async def stop(self) -> None:
        """断开连接。"""
