"""
app.api.live_stream_ws
~~~~~~~~~~~~~~~~~~~~~~

WebSocket 实时推送接口。

浏览器客户端连接 ``/ws`` 后即加入广播集合，接收全部特效推送。
客户端可以发送控制消息切换要中继的直播间::

    {"type": "connect", "username": "<主播用户名>"}

格式错误的消息不会断开连接，只会给发送方回一条 ``status`` 错误提示。
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.core.logging import get_logger, request_id_ctx_var
from app.core.rate_limit import WebSocketRateLimiter
from app.schemas.live_interactions import ConnectRequest
from app.schemas.notifications import StatusMessage
from app.services.live_relay import LiveRelay

logger = get_logger(__name__)

router: APIRouter = APIRouter()


async def _reply(websocket: WebSocket, message: StatusMessage) -> None:
    """只给当前客户端回消息，发送失败直接忽略。"""
    try:
        await websocket.send_text(message.to_wire())
    except Exception as e:
        logger.debug("回复客户端失败: %s", e)


async def handle_client_message(
    relay: LiveRelay,
    websocket: WebSocket,
    raw: str,
    limiter: WebSocketRateLimiter,
) -> None:
    """解析并执行一条客户端控制消息。"""
    try:
        request = ConnectRequest.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("无法解析的客户端消息，已丢弃: %.200s | %d 处错误", raw, e.error_count())
        await _reply(websocket, StatusMessage(message="Invalid request", level="error"))
        return

    if not limiter.is_allowed(id(websocket)):
        await _reply(
            websocket,
            StatusMessage(message="Too many connect requests, please slow down", level="error"),
        )
        return

    await relay.router.connect(request.username)


@router.websocket("/ws")
async def websocket_relay_endpoint(websocket: WebSocket) -> None:
    """WebSocket 推送端点。

    消息协议（服务端 → 客户端）按 ``type`` 区分:
      - ``updateProfilePicture`` / ``updateStats`` —— 观众累计数据
      - ``floating-photo`` / ``big-photo`` —— 头像特效
      - ``play-sound`` / ``stop-sound`` —— 音效控制
      - ``chat`` / ``roomUser`` / ``envelope-event`` —— 弹幕、在线人数、红包
      - ``status`` —— 连接状态提示

    Args:
        websocket: FastAPI WebSocket 连接对象。
    """
    token = request_id_ctx_var.set(f"ws-{uuid.uuid4().hex[:8]}")
    relay: LiveRelay = websocket.app.state.relay
    ws_limiter = WebSocketRateLimiter(interval_seconds=relay.settings.WS_RATE_LIMIT_INTERVAL)

    try:
        await relay.broadcaster.connect(websocket)
        logger.info("客户端已连接 | 在线: %d", relay.broadcaster.online_count)

        while True:
            raw: str = await websocket.receive_text()
            await handle_client_message(relay, websocket, raw, ws_limiter)

    except WebSocketDisconnect:
        pass  # 正常断开
    except Exception as e:
        logger.error("WebSocket 异常: %s", e, exc_info=True)
    finally:
        relay.broadcaster.disconnect(websocket)
        ws_limiter.remove_client(id(websocket))
        logger.info("客户端已断开 | 在线: %d", relay.broadcaster.online_count)
        request_id_ctx_var.reset(token)
