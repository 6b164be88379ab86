"""
app.services.playback_arbiter
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

音效仲裁器 —— 所有客户端共享同一条音频通道，任意时刻最多只有一个音效处于播放状态。

- 空闲时请求播放：标记为播放中，启动固定时长的到期定时器。
- 播放中再次请求：直接丢弃（不排队、不抢占）。
- 到期或被主动停止：释放占用，并通知客户端停止播放。

到期定时器绑定了每次播放的代次号，过期的定时器即使触发也不会结束后来的音效。
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlayResult:
    """播放请求结果。``started=False`` 表示音效被丢弃。"""

    started: bool
    cue: str


class PlaybackArbiter:
    """单飞音效仲裁器。

    Attributes:
        duration: 每个音效的占用时长（秒）。
        on_expire: 音效到期自动释放时的回调，用于向客户端推送 ``stop-sound``。
    """

    def __init__(
        self,
        duration: float,
        on_expire: Callable[[], None] | None = None,
    ) -> None:
        self.duration = duration
        self.on_expire = on_expire
        self._expiry: asyncio.TimerHandle | None = None
        self._generation: int = 0
        self._current_cue: str | None = None

    @property
    def active(self) -> bool:
        """当前是否有音效占用通道。"""
        return self._expiry is not None

    @property
    def current_cue(self) -> str | None:
        return self._current_cue

    def request_play(self, cue: str) -> PlayResult:
        """请求播放音效。必须在事件循环内调用。"""
        if self.active:
            logger.info("已有音效在播放，跳过: %s", cue)
            return PlayResult(started=False, cue=cue)

        self._generation += 1
        generation = self._generation
        loop = asyncio.get_running_loop()
        self._expiry = loop.call_later(self.duration, self._expire, generation)
        self._current_cue = cue
        logger.debug("开始播放音效: %s", cue)
        return PlayResult(started=True, cue=cue)

    def request_stop(self) -> bool:
        """立即结束当前音效。空闲时为空操作。

        Returns:
            是否真的停止了一个音效（调用方据此推送 ``stop-sound``）。
        """
        if self._expiry is None:
            return False
        self._expiry.cancel()
        self._release()
        logger.info("音效已被停止")
        return True

    def _expire(self, generation: int) -> None:
        if generation != self._generation or self._expiry is None:
            return
        logger.debug("音效到期: %s", self._current_cue)
        self._release()
        if self.on_expire is not None:
            self.on_expire()

    def _release(self) -> None:
        self._expiry = None
        self._current_cue = None
        # 作废已排队但尚未执行的到期回调
        self._generation += 1
