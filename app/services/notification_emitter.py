"""
app.services.notification_emitter
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

推送器 —— 把决策序列化为一条条推送消息，按产生顺序交给所有输出端。

输出端只需实现 ``publish(message: str)``，通常是 ``RoomBroadcaster``。
一个决策对应一条消息，不做合并也不缓存。
"""
from __future__ import annotations

from typing import Protocol

from app.core.logging import get_logger
from app.schemas.notifications import Notification

logger = get_logger(__name__)


class NotificationSink(Protocol):
    """推送消息的输出端。"""

    def publish(self, message: str) -> None: ...


class NotificationEmitter:
    """把 ``Notification`` 广播给所有已注册的输出端。"""

    def __init__(self, *sinks: NotificationSink) -> None:
        self._sinks: list[NotificationSink] = list(sinks)

    def add_sink(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    def remove_sink(self, sink: NotificationSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def emit(self, notification: Notification) -> str:
        """序列化并推送一条消息，返回实际发送的文本。"""
        message = notification.to_wire()
        for sink in self._sinks:
            try:
                sink.publish(message)
            except Exception as e:
                # 单个输出端失败不影响其他输出端
                logger.warning("推送失败 | type=%s | %s", notification.type, e)
        return message
