"""
app.services.event_router
~~~~~~~~~~~~~~~~~~~~~~~~~

事件路由 —— 管理唯一的直播连接，并把收到的事件按到达顺序交给特效引擎。

连接状态机::

    DISCONNECTED --connect()--> CONNECTING --成功--> CONNECTED
                                    |                  |
                                    +--失败------------+--断开/直播结束--> DISCONNECTED

任意状态下的新 ``connect()`` 都会先拆掉当前连接（尽力而为，忽略错误），
再以新用户名重新连接。被替换掉的连接后续推送的事件一律丢弃。
"""
from __future__ import annotations

import enum

from app.core.logging import get_logger
from app.schemas.live_events import (
    ConnectedEvent,
    DisconnectedEvent,
    LiveEvent,
    StreamEndEvent,
)
from app.schemas.notifications import StatusMessage, StopSound
from app.services.effect_engine import Decision, EffectEngine
from app.services.notification_emitter import NotificationEmitter
from app.services.stagger import StaggerScheduler
from app.sources.base import LiveEventSource, SourceFactory

logger = get_logger(__name__)


class RouterState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class EventRouter:
    """直播连接生命周期 + 事件分发。

    Attributes:
        engine: 特效决策引擎。
        emitter: 推送器。
        scheduler: 点赞特效的延时调度器。
        source_factory: 按用户名创建事件源的工厂。
        reset_on_reconnect: 新连接时是否清空观众数据并停止音效。
        cancel_stagger_on_disconnect: 断开时是否取消未触发的点赞特效。
    """

    def __init__(
        self,
        engine: EffectEngine,
        emitter: NotificationEmitter,
        scheduler: StaggerScheduler,
        source_factory: SourceFactory,
        reset_on_reconnect: bool = True,
        cancel_stagger_on_disconnect: bool = False,
    ) -> None:
        self.engine = engine
        self.emitter = emitter
        self.scheduler = scheduler
        self.source_factory = source_factory
        self.reset_on_reconnect = reset_on_reconnect
        self.cancel_stagger_on_disconnect = cancel_stagger_on_disconnect

        self.state: RouterState = RouterState.DISCONNECTED
        self.username: str | None = None
        self._source: LiveEventSource | None = None
        self._generation: int = 0

    # ── 连接管理 ──────────────────────────────────────────────────────

    async def connect(self, username: str) -> bool:
        """连接指定主播的直播间，替换掉已有连接。

        Returns:
            连接是否成功（被更新的请求替换时返回 ``False``）。
        """
        self._generation += 1
        generation = self._generation

        await self._teardown()
        if self.reset_on_reconnect:
            self._reset()

        self.state = RouterState.CONNECTING
        self.username = username
        logger.info("正在连接直播间 | user=%s", username)
        self._status(f"Connecting to @{username}...")

        try:
            source = self.source_factory(username, self._make_callback(generation))
            self._source = source
            await source.start()
        except Exception as e:
            if generation != self._generation:
                return False
            logger.error("连接直播间失败 | user=%s | %s", username, e)
            self._source = None
            self.state = RouterState.DISCONNECTED
            self._status(f"Failed to connect to @{username}: {e}", level="error")
            return False

        if generation != self._generation:
            # 等待期间已有新的连接请求，丢弃本次连接
            await self._stop_quietly(source)
            return False

        self.state = RouterState.CONNECTED
        logger.info("直播连接已建立 | platform=%s | user=%s", source.platform_name, username)
        self._status(f"Connected to @{username}")
        return True

    async def disconnect(self) -> None:
        """主动断开当前连接（应用关闭时调用）。"""
        self._generation += 1
        await self._teardown()
        self._mark_disconnected()

    async def _teardown(self) -> None:
        source, self._source = self._source, None
        if source is not None:
            await self._stop_quietly(source)

    @staticmethod
    async def _stop_quietly(source: LiveEventSource) -> None:
        try:
            await source.stop()
        except Exception as e:
            logger.warning("断开旧连接失败（已忽略）: %s", e)

    def _reset(self) -> None:
        self.engine.store.reset()
        if self.engine.arbiter.request_stop():
            self.emitter.emit(StopSound())
        self.scheduler.cancel_all()

    def _mark_disconnected(self) -> None:
        self.state = RouterState.DISCONNECTED
        if self.cancel_stagger_on_disconnect:
            self.scheduler.cancel_all()

    # ── 事件分发 ──────────────────────────────────────────────────────

    def _make_callback(self, generation: int):
        def _on_event(event: LiveEvent) -> None:
            if generation != self._generation:
                logger.debug("丢弃已替换连接的事件: %s", event.kind)
                return
            self.dispatch(event)

        return _on_event

    def dispatch(self, event: LiveEvent) -> None:
        """处理一条来自当前连接的事件。任何异常都不会抛出到事件源。"""
        try:
            match event:
                case ConnectedEvent():
                    logger.info("直播间已连接 | room_id=%s", event.room_id)
                case DisconnectedEvent():
                    logger.info("直播连接已断开 | user=%s", self.username)
                    self._mark_disconnected()
                    self._status("Disconnected from live stream", level="error")
                case StreamEndEvent():
                    logger.info("直播已结束 | action_id=%s", event.action_id)
                    self._mark_disconnected()
                    self._status("Live stream ended")
                case _:
                    # 握手完成前事件源可能已开始推送，CONNECTING 状态同样处理
                    if self.state is RouterState.DISCONNECTED:
                        logger.debug("未连接状态下收到事件，已忽略: %s", event.kind)
                        return
                    self.apply(self.engine.handle(event))
        except Exception as e:
            logger.error("事件处理异常 | kind=%s | %s", event.kind, e, exc_info=True)

    def apply(self, decisions: list[Decision]) -> None:
        """立即推送无延迟的决策，延迟决策交给调度器。"""
        for decision in decisions:
            if decision.delay > 0 and decision.batch is not None:
                self.scheduler.schedule(
                    decision.batch,
                    decision.delay,
                    lambda n=decision.notification: self.emitter.emit(n),
                )
            else:
                self.emitter.emit(decision.notification)

    def _status(self, message: str, level: str = "info") -> None:
        self.emitter.emit(StatusMessage(message=message, level=level))
