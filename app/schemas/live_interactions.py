"""
app.schemas.live_interactions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

客户端控制消息与 REST 接口的 Pydantic 请求/响应模型。
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

RouterStateName = Literal["disconnected", "connecting", "connected"]


class ConnectRequest(BaseModel):
    """客户端通过 WebSocket 发来的连接请求。"""

    type: Literal["connect"]
    username: str = Field(
        ..., min_length=1, max_length=64, description="要连接的直播间主播用户名",
    )


class UserStatsData(BaseModel):
    """单个观众的累计互动数据。"""

    username: str = Field(..., description="观众用户名")
    likes: int = Field(..., description="累计点赞数")
    gift_value: int = Field(..., description="累计礼物价值")
    shares: int = Field(..., description="累计分享次数")
    avatar: str | None = Field(default=None, description="最近一次的头像地址")


class RelayStatusData(BaseModel):
    """中继服务当前状态。"""

    state: RouterStateName = Field(..., description="直播连接状态")
    username: str | None = Field(default=None, description="当前连接的主播用户名")
    playing: bool = Field(..., description="当前是否有音效在播放")
    online_count: int = Field(..., description="在线客户端数")
    tracked_users: int = Field(..., description="已记录的观众数")
