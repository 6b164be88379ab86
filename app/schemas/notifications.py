"""
app.schemas.notifications
~~~~~~~~~~~~~~~~~~~~~~~~~

服务端 → 浏览器客户端的推送消息模型。

每种消息都有固定的 ``type`` 判别字段和固定的字段集合，
序列化时使用 camelCase 字段名，与前端约定保持一致。
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Notification(BaseModel):
    """推送消息基类。"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    type: str

    def to_wire(self) -> str:
        """序列化为发送给客户端的 JSON 文本（省略为空的可选字段）。"""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class StatsUpdate(Notification):
    """观众累计数据更新。点赞时带上分档头像，类型为 ``updateProfilePicture``。"""

    type: Literal["updateProfilePicture", "updateStats"] = "updateStats"
    username: str
    picture_url: str | None = None
    likes: int = 0
    gifts: int = 0
    shares: int = 0


class FloatingPhoto(Notification):
    type: Literal["floating-photo"] = "floating-photo"
    profile_picture_url: str | None = None
    user_name: str


class BigPhoto(Notification):
    type: Literal["big-photo"] = "big-photo"
    profile_picture_url: str | None = None
    user_name: str


class PlaySound(Notification):
    type: Literal["play-sound"] = "play-sound"
    sound: str


class StopSound(Notification):
    type: Literal["stop-sound"] = "stop-sound"


class ChatEcho(Notification):
    type: Literal["chat"] = "chat"
    user_name: str
    comment: str


class StatusMessage(Notification):
    type: Literal["status"] = "status"
    message: str
    level: Literal["info", "error"] = "info"


class RoomUserCount(Notification):
    type: Literal["roomUser"] = "roomUser"
    viewer_count: int


class EnvelopeNotice(Notification):
    type: Literal["envelope-event"] = "envelope-event"
    data: dict[str, Any] = Field(default_factory=dict)
