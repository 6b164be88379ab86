"""
app.services.effect_engine
~~~~~~~~~~~~~~~~~~~~~~~~~~

特效决策引擎 —— 把一条直播互动事件转换为一组推送决策。

每种事件对应一个处理方法，职责包括:
  1. 更新 ``SessionStore`` 中的观众计数；
  2. 决定要展示的画面（漂浮头像 / 大头像 / 分档头像）；
  3. 向 ``PlaybackArbiter`` 申请音效，只有申请成功才产生 ``play-sound``。

引擎本身不发送任何消息，只返回按顺序排列的 ``Decision`` 列表，
由路由层交给 ``NotificationEmitter`` 或延时调度器处理。
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass

from app.core.logging import get_logger
from app.core.settings import Settings
from app.core.sounds import SoundMapping
from app.schemas.live_events import (
    ChatEvent,
    EnvelopeEvent,
    FollowEvent,
    GiftEvent,
    LikeEvent,
    MemberEvent,
    RoomUserEvent,
    ShareEvent,
)
from app.schemas.notifications import (
    BigPhoto,
    ChatEcho,
    EnvelopeNotice,
    FloatingPhoto,
    Notification,
    PlaySound,
    RoomUserCount,
    StatsUpdate,
    StopSound,
)
from app.services.playback_arbiter import PlaybackArbiter
from app.services.session_store import SessionStore

logger = get_logger(__name__)

InteractionEvent = (
    MemberEvent
    | GiftEvent
    | LikeEvent
    | ShareEvent
    | FollowEvent
    | ChatEvent
    | EnvelopeEvent
    | RoomUserEvent
)


@dataclass(frozen=True)
class Decision:
    """一条待推送的决策。

    Attributes:
        notification: 推送给客户端的消息。
        delay: 延迟推送的秒数，0 表示立即推送。
        batch: 延迟推送所属的批次 ``(用户名, 批次号)``，用于整体取消。
    """

    notification: Notification
    delay: float = 0.0
    batch: tuple[str, int] | None = None


def avatar_tier(likes: int, tier_count: int) -> int:
    """根据累计点赞数计算头像档位，结果始终落在 ``[0, tier_count - 1]``。"""
    if tier_count < 1:
        raise ValueError("tier_count 必须 >= 1")
    return max(0, min(likes - 1, tier_count - 1))


class EffectEngine:
    """特效决策引擎。"""

    def __init__(
        self,
        store: SessionStore,
        arbiter: PlaybackArbiter,
        sounds: SoundMapping,
        settings: Settings,
    ) -> None:
        self.store = store
        self.arbiter = arbiter
        self.sounds = sounds
        self.settings = settings
        self._batches = itertools.count(1)

    # ── 入口 ──────────────────────────────────────────────────────────

    def handle(self, event: InteractionEvent) -> list[Decision]:
        """处理一条互动事件，返回按推送顺序排列的决策列表。"""
        match event:
            case MemberEvent():
                return self.on_member(event)
            case GiftEvent():
                return self.on_gift(event)
            case LikeEvent():
                return self.on_like(event)
            case ShareEvent():
                return self.on_share(event)
            case FollowEvent():
                return self.on_follow(event)
            case ChatEvent():
                return self.on_chat(event)
            case EnvelopeEvent():
                return self.on_envelope(event)
            case RoomUserEvent():
                return self.on_room_user(event)
        logger.warning("未知事件类型，已忽略: %r", event)
        return []

    # ── 各事件处理 ────────────────────────────────────────────────────

    def on_member(self, event: MemberEvent) -> list[Decision]:
        logger.info("%s 进入了直播间", event.unique_id)
        self.store.set_avatar(event.unique_id, event.profile_picture_url)
        decisions = [Decision(self._floating(event))]
        decisions.extend(self._play(self.settings.SOUND_JOIN))
        return decisions

    def on_gift(self, event: GiftEvent) -> list[Decision]:
        if event.is_streak_tick:
            logger.debug(
                "%s 正在连击礼物 %s x%d", event.unique_id, event.gift_name, event.repeat_count,
            )
            return []

        logger.info(
            "%s 送出礼物 %s x%d（价值 %d）",
            event.unique_id, event.gift_name, event.repeat_count, event.total_value,
        )
        self.store.set_avatar(event.unique_id, event.profile_picture_url)
        self.store.record_gift_value(event.unique_id, event.total_value)
        decisions = [
            Decision(self._stats(event.unique_id)),
            Decision(BigPhoto(
                profile_picture_url=event.profile_picture_url,
                user_name=event.unique_id,
            )),
        ]
        decisions.extend(self._play(self.settings.SOUND_GIFT))
        return decisions

    def on_like(self, event: LikeEvent) -> list[Decision]:
        user = event.unique_id
        count = event.like_count
        logger.debug("%s 点赞 %d 次", user, count)

        self.store.set_avatar(user, event.profile_picture_url)
        total = self.store.record_like(user, count)
        tiers = self.settings.AVATAR_TIERS
        picture = tiers[avatar_tier(total, len(tiers))]
        decisions = [Decision(self._stats(user, kind="updateProfilePicture", picture_url=picture))]

        batch = (user, next(self._batches))
        interval = self.settings.like_stagger
        photo = self._floating(event)
        decisions.extend(
            Decision(photo, delay=i * interval, batch=batch) for i in range(count)
        )

        if count > self.settings.BIG_LIKE_THRESHOLD:
            decisions.extend(self._play(self.settings.SOUND_BIG_LIKE))
        return decisions

    def on_share(self, event: ShareEvent) -> list[Decision]:
        logger.info("%s 分享了直播间", event.unique_id)
        self.store.set_avatar(event.unique_id, event.profile_picture_url)
        self.store.record_share(event.unique_id)
        decisions = [Decision(self._stats(event.unique_id)), Decision(self._floating(event))]
        decisions.extend(self._play(self.settings.SOUND_SHARE))
        return decisions

    def on_follow(self, event: FollowEvent) -> list[Decision]:
        logger.info("%s 关注了主播", event.unique_id)
        self.store.set_avatar(event.unique_id, event.profile_picture_url)
        decisions = [Decision(self._floating(event))]
        decisions.extend(self._play(self.settings.SOUND_FOLLOW))
        return decisions

    def on_chat(self, event: ChatEvent) -> list[Decision]:
        logger.info("%s (userId:%s) 发送弹幕: %s", event.unique_id, event.user_id, event.comment)
        self.store.set_avatar(event.unique_id, event.profile_picture_url)
        decisions = [Decision(ChatEcho(user_name=event.unique_id, comment=event.comment))]

        sound = self.sounds.lookup(event.comment)
        if sound is not None:
            decisions.extend(self._play(sound))
        # 停止口令必须在查表之后无条件检查
        if self.sounds.is_stop(event.comment) and self.arbiter.request_stop():
            decisions.append(Decision(StopSound()))
        return decisions

    def on_envelope(self, event: EnvelopeEvent) -> list[Decision]:
        logger.info("收到红包: %s", event.data)
        decisions = [Decision(EnvelopeNotice(data=event.data))]
        decisions.extend(self._play(self.settings.SOUND_ENVELOPE))
        return decisions

    def on_room_user(self, event: RoomUserEvent) -> list[Decision]:
        logger.debug("在线观众数: %d", event.viewer_count)
        return [Decision(RoomUserCount(viewer_count=event.viewer_count))]

    # ── 内部工具 ──────────────────────────────────────────────────────

    def _play(self, cue: str) -> list[Decision]:
        result = self.arbiter.request_play(cue)
        if not result.started:
            return []
        return [Decision(PlaySound(sound=cue))]

    def _floating(self, event: MemberEvent | LikeEvent | ShareEvent | FollowEvent) -> FloatingPhoto:
        return FloatingPhoto(
            profile_picture_url=event.profile_picture_url or self.store.avatar(event.unique_id),
            user_name=event.unique_id,
        )

    def _stats(
        self,
        user: str,
        kind: str = "updateStats",
        picture_url: str | None = None,
    ) -> StatsUpdate:
        snapshot = self.store.snapshot(user)
        return StatsUpdate(
            type=kind,
            username=user,
            picture_url=picture_url,
            likes=snapshot.likes,
            gifts=snapshot.gift_value,
            shares=snapshot.shares,
        )
