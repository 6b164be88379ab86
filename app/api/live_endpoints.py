"""
app.api.live_endpoints
~~~~~~~~~~~~~~~~~~~~~~

直播中继 REST 接口 —— 查看连接状态与观众累计数据。

端点:
  - ``GET /status``               → 中继状态（连接状态、主播、音效占用、在线客户端数）
  - ``GET /sessions``             → 所有观众的累计数据
  - ``GET /sessions/{username}``  → 单个观众的累计数据（未知观众返回全 0）
"""
from fastapi import APIRouter, Depends, Request

from app.api.deps import get_relay
from app.core.rate_limit import limiter
from app.core.settings import settings
from app.schemas.api_response import ApiResponse
from app.schemas.live_interactions import RelayStatusData, UserStatsData
from app.services.live_relay import LiveRelay

router: APIRouter = APIRouter()


@router.get("/status", summary="获取中继状态")
@limiter.limit(settings.API_RATE_LIMIT)
async def relay_status(
    request: Request, relay: LiveRelay = Depends(get_relay),
) -> ApiResponse[RelayStatusData]:
    """返回直播连接状态与音效占用情况。"""
    return ApiResponse.ok(data=relay.status())


@router.get("/sessions", summary="获取观众累计数据列表")
@limiter.limit(settings.API_RATE_LIMIT)
async def list_sessions(
    request: Request, relay: LiveRelay = Depends(get_relay),
) -> ApiResponse[list[UserStatsData]]:
    """返回当前直播连接下所有观众的点赞、礼物、分享累计。"""
    return ApiResponse.ok(data=relay.list_user_stats())


@router.get("/sessions/{username}", summary="获取单个观众累计数据")
@limiter.limit(settings.API_RATE_LIMIT)
async def user_session(
    request: Request, username: str, relay: LiveRelay = Depends(get_relay),
) -> ApiResponse[UserStatsData]:
    """返回指定观众的累计数据。

    Args:
        username: 观众用户名。
    """
    return ApiResponse.ok(data=relay.user_stats(username))
