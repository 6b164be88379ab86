"""
app.sources.tiktok_translate
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

TikTokLive 事件对象 → ``LiveEvent`` 模型的转换函数。

只按属性名读取（鸭子类型），不依赖 TikTokLive 的具体类，方便单元测试。
缺失的属性一律给空值，数值字段的容错由 ``LiveEvent`` 模型统一处理。
"""
from __future__ import annotations

from typing import Any

from app.schemas.live_events import (
    ChatEvent,
    ConnectedEvent,
    DisconnectedEvent,
    EnvelopeEvent,
    FollowEvent,
    GiftEvent,
    LikeEvent,
    MemberEvent,
    RoomUserEvent,
    ShareEvent,
    StreamEndEvent,
)


def avatar_url(user: Any) -> str | None:
    """取观众头像的第一个可用地址。"""
    thumb = getattr(user, "avatar_thumb", None)
    if thumb is None:
        return None
    for attr in ("m_urls", "url_list"):
        urls = getattr(thumb, attr, None)
        if urls:
            return str(urls[0])
    return None


def user_fields(event: Any) -> dict[str, Any]:
    """提取事件中的观众资料。"""
    user = getattr(event, "user", None)
    if user is None:
        return {}
    return {
        "unique_id": getattr(user, "unique_id", "") or getattr(user, "nickname", ""),
        "user_id": getattr(user, "id", ""),
        "profile_picture_url": avatar_url(user),
    }


def to_connected(event: Any) -> ConnectedEvent:
    return ConnectedEvent(room_id=getattr(event, "room_id", ""))


def to_disconnected(event: Any) -> DisconnectedEvent:
    return DisconnectedEvent()


def to_stream_end(event: Any) -> StreamEndEvent:
    return StreamEndEvent(action_id=getattr(event, "action", 0))


def to_member(event: Any) -> MemberEvent:
    return MemberEvent(**user_fields(event))


def to_gift(event: Any) -> GiftEvent:
    gift = getattr(event, "gift", None)
    return GiftEvent(
        **user_fields(event),
        gift_name=getattr(gift, "name", ""),
        gift_type=getattr(gift, "type", 0),
        diamond_count=getattr(gift, "diamond_count", 0),
        repeat_count=getattr(event, "repeat_count", 1),
        repeat_end=getattr(event, "repeat_end", False),
    )


def to_like(event: Any) -> LikeEvent:
    return LikeEvent(**user_fields(event), like_count=getattr(event, "count", 0))


def to_share(event: Any) -> ShareEvent:
    return ShareEvent(**user_fields(event))


def to_follow(event: Any) -> FollowEvent:
    return FollowEvent(**user_fields(event))


def to_chat(event: Any) -> ChatEvent:
    return ChatEvent(**user_fields(event), comment=getattr(event, "comment", ""))


def to_envelope(event: Any) -> EnvelopeEvent:
    to_dict = getattr(event, "to_dict", None)
    data = to_dict() if callable(to_dict) else {}
    return EnvelopeEvent(data=data if isinstance(data, dict) else {})


def to_room_user(event: Any) -> RoomUserEvent:
    count = getattr(event, "m_total", None)
    if count is None:
        count = getattr(event, "viewer_count", 0)
    return RoomUserEvent(viewer_count=count)
