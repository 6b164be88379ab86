"""
tests.test_live_stream_ws
~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 推送端点与 REST 接口测试。

WebSocket 端点直接以 mock 连接调用，避开 TestClient 的 WebSocket 线程模型；
REST 接口使用 TestClient。
"""
from __future__ import annotations

import json
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocket, WebSocketDisconnect
from fastapi.testclient import TestClient

from app.api.live_stream_ws import websocket_relay_endpoint
from app.core.rate_limit import WebSocketRateLimiter
from app.schemas.live_events import LikeEvent
from app.services.event_router import RouterState
from app.services.live_relay import LiveRelay
from tests.conftest import FakeSource, make_settings


def _mock_websocket(relay: LiveRelay, messages: list[str]) -> AsyncMock:
    mock_ws = AsyncMock(spec=WebSocket)
    mock_ws.app = MagicMock()
    mock_ws.app.state.relay = relay
    mock_ws.receive_text.side_effect = [*messages, WebSocketDisconnect()]
    return mock_ws


def _replies(mock_ws: AsyncMock) -> list[dict]:
    return [json.loads(call.args[0]) for call in mock_ws.send_text.call_args_list]


# ==============================================================================
# 单元测试: WebSocketRateLimiter
# ==============================================================================
def test_websocket_rate_limiter_unit() -> None:
    """测试 WebSocket 内存限流器的基础逻辑"""
    limiter = WebSocketRateLimiter(interval_seconds=0.2)
    client_id = 999

    # 第一次应该允许，立刻第二次应该被拦截
    assert limiter.is_allowed(client_id) is True
    assert limiter.is_allowed(client_id) is False

    # 等待超过间隔时间后应该放行
    time.sleep(0.25)
    assert limiter.is_allowed(client_id) is True

    limiter.remove_client(client_id)
    assert client_id not in limiter._last_message_time


# ==============================================================================
# WebSocket 端点
# ==============================================================================
class TestWebSocketEndpoint:

    @pytest.mark.asyncio
    async def test_connect_request_starts_relay(self) -> None:
        relay = LiveRelay(settings=make_settings(), source_factory=FakeSource)
        mock_ws = _mock_websocket(relay, [json.dumps({"type": "connect", "username": "streamer"})])

        await websocket_relay_endpoint(mock_ws)

        mock_ws.accept.assert_awaited_once()
        assert relay.router.state is RouterState.CONNECTED
        assert relay.router.username == "streamer"
        # 断开后应从广播集合中移除
        assert relay.broadcaster.online_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw",
        ["not json", json.dumps({"type": "connect"}), json.dumps({"type": "dance", "username": "x"})],
    )
    async def test_malformed_message_replies_status(self, raw: str) -> None:
        """格式错误的消息只回复 status 错误，不建立连接也不断开客户端。"""
        relay = LiveRelay(settings=make_settings(), source_factory=FakeSource)
        mock_ws = _mock_websocket(relay, [raw])

        await websocket_relay_endpoint(mock_ws)

        assert _replies(mock_ws) == [
            {"type": "status", "message": "Invalid request", "level": "error"},
        ]
        assert relay.router.state is RouterState.DISCONNECTED
        assert FakeSource.instances == []

    @pytest.mark.asyncio
    async def test_connect_requests_are_throttled(self) -> None:
        relay = LiveRelay(settings=make_settings(WS_RATE_LIMIT_INTERVAL=60), source_factory=FakeSource)
        request = json.dumps({"type": "connect", "username": "streamer"})
        mock_ws = _mock_websocket(relay, [request, request])

        await websocket_relay_endpoint(mock_ws)

        assert len(FakeSource.instances) == 1
        assert "Too many connect requests" in _replies(mock_ws)[-1]["message"]

    @pytest.mark.asyncio
    async def test_broadcast_reaches_clients_and_drops_dead_ones(self) -> None:
        relay = LiveRelay(settings=make_settings(), source_factory=FakeSource)
        alive = AsyncMock(spec=WebSocket)
        dead = AsyncMock(spec=WebSocket)
        dead.send_text.side_effect = RuntimeError("client gone")
        await relay.broadcaster.connect(alive)
        await relay.broadcaster.connect(dead)

        await relay.broadcaster.broadcast('{"type": "stop-sound"}')

        alive.send_text.assert_awaited_once_with('{"type": "stop-sound"}')
        assert relay.broadcaster.online_count == 1


# ==============================================================================
# REST 接口
# ==============================================================================
class TestRestEndpoints:

    def test_status_and_sessions(self) -> None:
        from app.main import app

        with TestClient(app) as client:
            relay: LiveRelay = app.state.relay
            relay.store.record_like("alice", 4)
            relay.store.set_avatar("alice", "a.jpg")

            status = client.get("/api/status").json()
            assert status["code"] == 200
            assert status["data"]["state"] == "disconnected"
            assert status["data"]["tracked_users"] == 1

            sessions = client.get("/api/sessions").json()["data"]
            assert sessions == [
                {"username": "alice", "likes": 4, "gift_value": 0, "shares": 0, "avatar": "a.jpg"},
            ]

            unknown = client.get("/api/sessions/nobody").json()["data"]
            assert unknown["likes"] == 0

    def test_health(self) -> None:
        from app.main import app

        with TestClient(app) as client:
            assert client.get("/health").json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_like_event_updates_rest_view(self) -> None:
        relay = LiveRelay(settings=make_settings(), source_factory=FakeSource)
        await relay.router.connect("streamer")

        FakeSource.instances[0].push(LikeEvent(unique_id="alice", like_count=2))

        assert relay.user_stats("alice").likes == 2
        assert relay.status().tracked_users == 1
        relay.scheduler.cancel_all()
