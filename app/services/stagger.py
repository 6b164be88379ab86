"""
app.services.stagger
~~~~~~~~~~~~~~~~~~~~

延时推送调度器 —— 管理同一批点赞的逐个弹出特效。

每个定时器都登记在 ``(用户名, 批次号)`` 下，可以按批次或整体取消。
"""
from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable

from app.core.logging import get_logger

logger = get_logger(__name__)

BatchKey = tuple[str, int]


class StaggerScheduler:
    """按批次分组的可取消定时器集合。"""

    def __init__(self) -> None:
        self._pending: dict[BatchKey, set[asyncio.TimerHandle]] = defaultdict(set)

    def schedule(self, batch: BatchKey, delay: float, callback: Callable[[], None]) -> None:
        """在 ``delay`` 秒后执行 ``callback``。必须在事件循环内调用。"""
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle | None = None

        def _fire() -> None:
            self._discard(batch, handle)
            callback()

        handle = loop.call_later(delay, _fire)
        self._pending[batch].add(handle)

    def cancel(self, batch: BatchKey) -> int:
        """取消某一批次中尚未触发的定时器，返回取消数量。"""
        handles = self._pending.pop(batch, set())
        for handle in handles:
            handle.cancel()
        return len(handles)

    def cancel_all(self) -> int:
        """取消全部未触发的定时器，返回取消数量。"""
        cancelled = sum(self.cancel(batch) for batch in list(self._pending))
        if cancelled:
            logger.info("已取消 %d 个未触发的点赞特效", cancelled)
        return cancelled

    @property
    def pending_count(self) -> int:
        return sum(len(handles) for handles in self._pending.values())

    def _discard(self, batch: BatchKey, handle: asyncio.TimerHandle | None) -> None:
        handles = self._pending.get(batch)
        if handles is None:
            return
        handles.discard(handle)
        if not handles:
            del self._pending[batch]
