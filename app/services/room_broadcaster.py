"""
app.services.room_broadcaster
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 连接广播器 —— 维护在线客户端集合与广播能力。

``publish()`` 是同步的：消息先进入队列，由单个后台任务 ``run()`` 按顺序广播，
保证所有客户端收到的消息顺序与产生顺序一致。
"""
from __future__ import annotations

import asyncio

from fastapi import WebSocket

from app.core.logging import get_logger

logger = get_logger(__name__)


class RoomBroadcaster:
    """WebSocket 连接广播器。

    Attributes:
        active_connections: 当前在线的所有 WebSocket 连接。
    """

    def __init__(self) -> None:
        self.active_connections: set[WebSocket] = set()
        self._queue: asyncio.Queue[str] = asyncio.Queue()

    async def connect(self, websocket: WebSocket) -> None:
        """接受新连接并加入在线集合。"""
        await websocket.accept()
        self.active_connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        """从在线集合移除断开的连接。"""
        self.active_connections.discard(websocket)

    def publish(self, message: str) -> None:
        """把消息放入广播队列。"""
        self._queue.put_nowait(message)

    async def broadcast(self, message: str) -> None:
        """向所有在线客户端广播消息，发送失败的连接会被移除。"""
        connections = list(self.active_connections)
        tasks = [ws.send_text(message) for ws in connections]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for ws, result in zip(connections, results):
            if isinstance(result, Exception):
                logger.warning("广播失败，移除断开的连接: %s", result)
                self.active_connections.discard(ws)

    async def run(self) -> None:
        """后台广播循环，直到任务被取消。"""
        while True:
            message = await self._queue.get()
            try:
                await self.broadcast(message)
            finally:
                self._queue.task_done()

    @property
    def online_count(self) -> int:
        """当前在线客户端数。"""
        return len(self.active_connections)
