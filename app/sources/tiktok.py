"""
app.sources.tiktok
~~~~~~~~~~~~~~~~~~

基于 TikTokLive 的直播事件源。

为每个关心的 TikTokLive 事件类型注册监听器，收到后经
``tiktok_translate`` 转换为 ``LiveEvent`` 再交给回调。
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from TikTokLive import TikTokLiveClient
from TikTokLive.events import (
    CommentEvent,
    ConnectEvent,
    DisconnectEvent,
    EnvelopeEvent,
    FollowEvent,
    GiftEvent,
    JoinEvent,
    LikeEvent,
    LiveEndEvent,
    RoomUserSeqEvent,
    ShareEvent,
)

from app.core.logging import get_logger
from app.schemas.live_events import LiveEvent
from app.sources import tiktok_translate as translate
from app.sources.base import EventCallback, LiveEventSource

logger = get_logger(__name__)

_TRANSLATORS: dict[type, Callable[[Any], LiveEvent]] = {
    ConnectEvent: translate.to_connected,
    DisconnectEvent: translate.to_disconnected,
    LiveEndEvent: translate.to_stream_end,
    JoinEvent: translate.to_member,
    GiftEvent: translate.to_gift,
    LikeEvent: translate.to_like,
    ShareEvent: translate.to_share,
    FollowEvent: translate.to_follow,
    CommentEvent: translate.to_chat,
    EnvelopeEvent: translate.to_envelope,
    RoomUserSeqEvent: translate.to_room_user,
}


class TikTokLiveSource(LiveEventSource):
    """TikTok 直播间事件源。"""

    def __init__(self, username: str, on_event: EventCallback) -> None:
        super().__init__(username, on_event)
        self._client = TikTokLiveClient(unique_id=username)
        self._task: asyncio.Task | None = None
        for event_type, translator in _TRANSLATORS.items():
            self._client.add_listener(event_type, self._make_listener(translator))

    @property
    def platform_name(self) -> str:
        return "tiktok"

    def _make_listener(self, translator: Callable[[Any], LiveEvent]) -> Callable[[Any], Any]:
        async def _listener(raw_event: Any) -> None:
            try:
                event = translator(raw_event)
            except Exception as e:
                logger.warning("TikTok 事件转换失败，已丢弃: %s", e, exc_info=True)
                return
            self.on_event(event)

        return _listener

    async def start(self) -> None:
        """连接直播间，连接建立后返回；接收循环在后台任务中运行。"""
        self._task = await self._client.start()
        self._task.add_done_callback(self._on_task_done)
        logger.info("TikTok 已连接 | user=%s | room_id=%s", self.username, self._client.room_id)

    async def stop(self) -> None:
        if self._client.connected:
            await self._client.disconnect()

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("TikTok 接收循环异常退出 | user=%s | %s", self.username, exc)


def create_tiktok_source(username: str, on_event: EventCallback) -> LiveEventSource:
    """默认的事件源工厂。"""
    return TikTokLiveSource(username, on_event)
