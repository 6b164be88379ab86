"""
app.core.settings
~~~~~~~~~~~~~~~~~

集中式配置管理，基于 pydantic-settings 自动从 ``.env`` 文件加载。

支持多环境配置（dev / test / prod），加载顺序为:
  1. 环境变量（最高优先级）
  2. ``.env.{ENVIRONMENT}`` 环境专属文件
  3. ``.env`` 基础文件
  4. 字段默认值（最低优先级）
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 读取当前环境标识（在 Settings 类定义之前，用于决定加载哪个 .env 文件）
_CURRENT_ENV: str = os.getenv("ENVIRONMENT", "dev")

_DEFAULT_PHRASES: dict[str, str] = {
    "m": "sounds/1.mp3",
    "assalamualaikum": "sounds/salam.mp3",
    "assalamu'alaikum": "sounds/salam.mp3",
    "assalamu alaikum": "sounds/salam.mp3",
    "taptap yuk": "sounds/kentut.mp3",
    "halo": "sounds/hallo.mp3",
}


class Settings(BaseSettings):
    """全局配置对象，字段值按如下优先级加载：环境变量 > .env.{env} > .env > 默认值。"""

    # ── 基础 ──────────────────────────────────────────────────────────
    PROJECT_NAME: str = Field(default="TikTok Live Relay", description="项目名称")
    VERSION: str = Field(default="0.1.0", description="版本号")
    ENVIRONMENT: Literal["dev", "test", "prod"] = Field(
        default="dev",
        description="运行环境：dev / test / prod",
    )

    # ── 服务 ──────────────────────────────────────────────────────────
    HOST: str = Field(default="0.0.0.0", description="服务监听地址")
    PORT: int = Field(default=3000, description="服务监听端口")
    LOG_LEVEL: str = Field(default="INFO", description="日志级别（可被环境属性覆盖）")
    STATIC_DIR: str = Field(
        default="public",
        description="静态资源根目录（图片、音效、前端页面），挂载在 / 下",
    )

    # ── 音效仲裁 ──────────────────────────────────────────────────────
    SOUND_DURATION_MS: int = Field(
        default=5000, gt=0,
        description="单个音效的占用时长，到期后自动释放并通知客户端停止",
    )
    STOP_KEYWORD: str = Field(default="ganti", description="弹幕中的停止音效口令")
    SOUND_COUNT: int = Field(
        default=20, ge=0,
        description="自动生成的数字口令数量（1..N → sounds/{n}.mp3）",
    )
    SOUND_OVERRIDES: dict[str, str] = Field(
        default_factory=lambda: {"5": "sounds/ahh.mp3"},
        description="覆盖自动生成的数字口令音效",
    )
    SOUND_PHRASES: dict[str, str] = Field(
        default_factory=lambda: dict(_DEFAULT_PHRASES),
        description="文字口令 → 音效路径",
    )
    SOUND_JOIN: str = Field(default="sounds/hallo.mp3", description="观众进场音效")
    SOUND_GIFT: str = Field(default="sounds/winner.mp3", description="礼物音效")
    SOUND_SHARE: str = Field(default="sounds/kentut.mp3", description="分享音效")
    SOUND_FOLLOW: str = Field(default="sounds/hallo.mp3", description="关注音效")
    SOUND_ENVELOPE: str = Field(default="sounds/anjay.mp3", description="红包音效")
    SOUND_BIG_LIKE: str = Field(default="sounds/winner.mp3", description="大批点赞音效")

    # ── 点赞特效 ──────────────────────────────────────────────────────
    LIKE_STAGGER_MS: int = Field(
        default=1000, ge=0,
        description="同一批点赞的漂浮头像逐个弹出的间隔",
    )
    BIG_LIKE_THRESHOLD: int = Field(
        default=10, ge=0,
        description="单批点赞数超过该值时额外触发大批点赞音效",
    )
    AVATAR_TIERS: list[str] = Field(
        default_factory=lambda: [
            "images/image1.jpg",
            "images/image2.jpg",
            "images/image3.jpg",
        ],
        description="按累计点赞数分档的头像图片，第 n 档对应 n 个赞，超出后停在最后一档",
    )

    # ── 连接生命周期 ──────────────────────────────────────────────────
    RESET_ON_RECONNECT: bool = Field(
        default=True,
        description="发起新连接时清空用户计数、停止当前音效并取消未触发的点赞特效",
    )
    CANCEL_STAGGER_ON_DISCONNECT: bool = Field(
        default=False,
        description="直播断开时是否取消尚未弹出的点赞特效（默认允许其继续弹出）",
    )

    # ── 限流 ──────────────────────────────────────────────────────────
    WS_RATE_LIMIT_INTERVAL: float = Field(
        default=1.0, ge=0,
        description="同一客户端两次 connect 请求的最小间隔（秒）",
    )
    API_RATE_LIMIT: str = Field(default="30/minute", description="REST 接口限流规则")

    # ── Pydantic Settings ─────────────────────────────────────────────
    # 先加载 .env.{env} 再加载 .env，前者优先级更高
    model_config = SettingsConfigDict(
        env_file=(f".env.{_CURRENT_ENV}", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("AVATAR_TIERS")
    @classmethod
    def _tiers_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("AVATAR_TIERS 至少需要一张图片")
        return value

    # ── 环境判断 ──────────────────────────────────────────────────────

    @property
    def is_prod(self) -> bool:
        """当前是否为生产环境。"""
        return self.ENVIRONMENT == "prod"

    @property
    def is_dev(self) -> bool:
        """当前是否为开发环境。"""
        return self.ENVIRONMENT == "dev"

    # ── 环境差异化行为 ────────────────────────────────────────────────

    @property
    def debug(self) -> bool:
        """是否开启 debug 模式。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def reload(self) -> bool:
        """是否开启热重载。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def effective_log_level(self) -> str:
        """根据环境自动推断日志级别。

        - dev  → INFO
        - test → DEBUG（方便排查测试失败）
        - prod → WARNING（减少噪音）

        如果环境变量中显式设置了 LOG_LEVEL，会覆盖此默认推断。
        """
        env_log = os.getenv("LOG_LEVEL")
        if env_log:
            return env_log
        return {
            "dev": "INFO",
            "test": "DEBUG",
            "prod": "WARNING",
        }.get(self.ENVIRONMENT, "INFO")

    @property
    def allow_cors_all_origins(self) -> bool:
        """是否允许所有 CORS 来源。非 prod 环境允许，方便本地调试。"""
        return not self.is_prod

    @property
    def sound_duration(self) -> float:
        """音效占用时长（秒）。"""
        return self.SOUND_DURATION_MS / 1000

    @property
    def like_stagger(self) -> float:
        """点赞特效间隔（秒）。"""
        return self.LIKE_STAGGER_MS / 1000


@lru_cache
def get_settings() -> Settings:
    """获取全局 Settings 单例（带缓存，避免重复解析 .env）。"""
    return Settings()


settings: Settings = get_settings()
