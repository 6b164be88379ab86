"""
app.schemas.live_events
~~~~~~~~~~~~~~~~~~~~~~~

直播平台推送事件的 Pydantic 模型。

所有事件组成一个以 ``kind`` 为标签的封闭联合类型 ``LiveEvent``，
路由层通过单一的 ``match`` 分发，而不是按事件名注册回调。

数值字段统一做宽松解析：缺失、无法解析或为负数时按 0 处理，
保证计数器始终单调且有定义。
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


def _coerce_count(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return max(number, 0)


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


Count = Annotated[int, BeforeValidator(_coerce_count)]
Flag = Annotated[bool, BeforeValidator(_coerce_flag)]
Text = Annotated[str, BeforeValidator(_coerce_text)]


class _EventModel(BaseModel):
    """事件模型基类：字段对外使用平台的 camelCase 命名。"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class _UserEvent(_EventModel):
    """携带观众资料的事件。"""

    unique_id: Text = Field(default="", description="观众唯一用户名")
    user_id: Text = Field(default="", description="平台内部用户 ID")
    profile_picture_url: str | None = Field(default=None, description="头像地址")


# ── 连接生命周期 ──────────────────────────────────────────────────────

class ConnectedEvent(_EventModel):
    kind: Literal["connected"] = "connected"
    room_id: Text = ""


class DisconnectedEvent(_EventModel):
    kind: Literal["disconnected"] = "disconnected"


class StreamEndEvent(_EventModel):
    kind: Literal["stream_end"] = "stream_end"
    action_id: Count = 0


# ── 观众互动 ──────────────────────────────────────────────────────────

class MemberEvent(_UserEvent):
    kind: Literal["member"] = "member"


class GiftEvent(_UserEvent):
    """礼物事件。

    ``gift_type == 1`` 的礼物可以连击，连击过程中平台会持续推送
    ``repeat_end=False`` 的中间事件，只有最后一条携带最终的 ``repeat_count``。
    """

    kind: Literal["gift"] = "gift"
    gift_name: Text = ""
    gift_type: Count = 0
    repeat_end: Flag = False
    repeat_count: Count = 1
    diamond_count: Count = Field(default=0, description="单个礼物价值")

    @property
    def is_streak_tick(self) -> bool:
        """是否为连击进行中的中间事件。"""
        return self.gift_type == 1 and not self.repeat_end

    @property
    def total_value(self) -> int:
        """本次礼物总价值 = 连击次数 × 单价。"""
        return self.repeat_count * self.diamond_count


class LikeEvent(_UserEvent):
    kind: Literal["like"] = "like"
    like_count: Count = 0


class ShareEvent(_UserEvent):
    kind: Literal["share"] = "share"


class FollowEvent(_UserEvent):
    kind: Literal["follow"] = "follow"


class ChatEvent(_UserEvent):
    kind: Literal["chat"] = "chat"
    comment: Text = ""


class EnvelopeEvent(_EventModel):
    kind: Literal["envelope"] = "envelope"
    data: dict[str, Any] = Field(default_factory=dict)


class RoomUserEvent(_EventModel):
    kind: Literal["room_user"] = "room_user"
    viewer_count: Count = 0


LiveEvent = Annotated[
    Union[
        ConnectedEvent,
        DisconnectedEvent,
        StreamEndEvent,
        MemberEvent,
        GiftEvent,
        LikeEvent,
        ShareEvent,
        FollowEvent,
        ChatEvent,
        EnvelopeEvent,
        RoomUserEvent,
    ],
    Field(discriminator="kind"),
]

_live_event_adapter: TypeAdapter[LiveEvent] = TypeAdapter(LiveEvent)


def parse_live_event(payload: dict[str, Any]) -> LiveEvent:
    """将原始字典解析为具体的事件模型（按 ``kind`` 区分）。"""
    return _live_event_adapter.validate_python(payload)
