"""
app.services.live_relay
~~~~~~~~~~~~~~~~~~~~~~~

直播互动中继 —— 组装并持有全部运行时状态。

在 FastAPI lifespan 中创建一个实例并挂载于 ``app.state.relay``，
各组件通过构造函数注入，测试时可以独立创建互不干扰的实例。
"""
from __future__ import annotations

from app.core.logging import get_logger
from app.core.settings import Settings
from app.core.sounds import SoundMapping
from app.schemas.live_interactions import RelayStatusData, UserStatsData
from app.schemas.notifications import StopSound
from app.services.effect_engine import EffectEngine
from app.services.event_router import EventRouter
from app.services.notification_emitter import NotificationEmitter
from app.services.playback_arbiter import PlaybackArbiter
from app.services.room_broadcaster import RoomBroadcaster
from app.services.session_store import SessionStore
from app.services.stagger import StaggerScheduler
from app.sources.base import SourceFactory

logger = get_logger(__name__)


class LiveRelay:
    """直播互动中继（每个进程一个）。

    Attributes:
        broadcaster: 在线客户端广播器。
        emitter: 推送器，输出端为 ``broadcaster``。
        store: 观众数据表。
        arbiter: 音效仲裁器，到期时推送 ``stop-sound``。
        engine: 特效决策引擎。
        router: 直播连接与事件路由。
    """

    def __init__(self, settings: Settings, source_factory: SourceFactory) -> None:
        self.settings = settings
        self.broadcaster = RoomBroadcaster()
        self.emitter = NotificationEmitter(self.broadcaster)
        self.store = SessionStore()
        self.arbiter = PlaybackArbiter(
            duration=settings.sound_duration,
            on_expire=lambda: self.emitter.emit(StopSound()),
        )
        self.scheduler = StaggerScheduler()
        self.engine = EffectEngine(
            store=self.store,
            arbiter=self.arbiter,
            sounds=SoundMapping.from_settings(settings),
            settings=settings,
        )
        self.router = EventRouter(
            engine=self.engine,
            emitter=self.emitter,
            scheduler=self.scheduler,
            source_factory=source_factory,
            reset_on_reconnect=settings.RESET_ON_RECONNECT,
            cancel_stagger_on_disconnect=settings.CANCEL_STAGGER_ON_DISCONNECT,
        )

    async def shutdown(self) -> None:
        """断开直播连接并取消所有延时特效。"""
        await self.router.disconnect()
        self.scheduler.cancel_all()
        self.arbiter.request_stop()
        logger.info("直播中继已关闭")

    def status(self) -> RelayStatusData:
        """返回中继当前状态摘要。"""
        return RelayStatusData(
            state=self.router.state.value,
            username=self.router.username,
            playing=self.arbiter.active,
            online_count=self.broadcaster.online_count,
            tracked_users=len(self.store),
        )

    def user_stats(self, username: str) -> UserStatsData:
        """返回单个观众的累计数据（未知用户全 0）。"""
        snapshot = self.store.snapshot(username)
        return UserStatsData(
            username=username,
            likes=snapshot.likes,
            gift_value=snapshot.gift_value,
            shares=snapshot.shares,
            avatar=snapshot.avatar,
        )

    def list_user_stats(self) -> list[UserStatsData]:
        return [self.user_stats(user) for user in self.store.users()]
