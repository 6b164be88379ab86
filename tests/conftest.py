"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 用假的事件源和输出端替换 TikTok 连接与 WebSocket，
使单元测试可在无网络环境下快速运行。
"""
from __future__ import annotations

import json
import os
from typing import Any

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")

from app.core.settings import Settings  # noqa: E402
from app.core.sounds import SoundMapping  # noqa: E402
from app.schemas.live_events import LiveEvent  # noqa: E402
from app.services.effect_engine import EffectEngine  # noqa: E402
from app.services.playback_arbiter import PlaybackArbiter  # noqa: E402
from app.services.session_store import SessionStore  # noqa: E402
from app.sources.base import EventCallback, LiveEventSource  # noqa: E402


class FakeSink:
    """记录所有推送消息的输出端。"""

    def __init__(self) -> None:
        self.raw: list[str] = []

    def publish(self, message: str) -> None:
        self.raw.append(message)

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(m) for m in self.raw]

    def of_type(self, type_: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["type"] == type_]

    def clear(self) -> None:
        self.raw.clear()


class FakeSource(LiveEventSource):
    """可控的假事件源。``fail`` 不为空时 ``start()`` 抛出该异常。"""

    instances: list[FakeSource] = []

    def __init__(self, username: str, on_event: EventCallback, fail: Exception | None = None) -> None:
        super().__init__(username, on_event)
        self.fail = fail
        self.started = False
        self.stopped = False
        FakeSource.instances.append(self)

    @property
    def platform_name(self) -> str:
        return "fake"

    async def start(self) -> None:
        if self.fail is not None:
            raise self.fail
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    def push(self, event: LiveEvent) -> None:
        self.on_event(event)


def make_settings(**overrides: Any) -> Settings:
    """测试用配置：缩短音效时长与点赞间隔。"""
    values: dict[str, Any] = {
        "SOUND_DURATION_MS": 50,
        "LIKE_STAGGER_MS": 10,
        "BIG_LIKE_THRESHOLD": 10,
        "AVATAR_TIERS": ["tier1.jpg", "tier2.jpg", "tier3.jpg"],
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture()
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture()
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture()
def arbiter(test_settings: Settings) -> PlaybackArbiter:
    return PlaybackArbiter(duration=test_settings.sound_duration)


@pytest.fixture()
def engine(store: SessionStore, arbiter: PlaybackArbiter, test_settings: Settings) -> EffectEngine:
    return EffectEngine(
        store=store,
        arbiter=arbiter,
        sounds=SoundMapping.from_settings(test_settings),
        settings=test_settings,
    )


@pytest.fixture(autouse=True)
def _reset_fake_sources() -> None:
    FakeSource.instances.clear()
