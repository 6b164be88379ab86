"""
tests.test_tiktok_translate
~~~~~~~~~~~~~~~~~~~~~~~~~~~

TikTokLive 事件 → LiveEvent 转换测试。用 SimpleNamespace 模拟 TikTokLive 事件对象。
"""
from __future__ import annotations

from types import SimpleNamespace

from app.schemas.live_events import GiftEvent, LikeEvent, parse_live_event
from app.sources import tiktok_translate as translate


def _user(unique_id: str = "alice", urls: list[str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        unique_id=unique_id,
        nickname="Alice",
        id=12345,
        avatar_thumb=SimpleNamespace(m_urls=urls if urls is not None else ["https://cdn/a.jpg"]),
    )


class TestTranslate:

    def test_user_fields(self) -> None:
        fields = translate.user_fields(SimpleNamespace(user=_user()))

        assert fields == {
            "unique_id": "alice",
            "user_id": 12345,
            "profile_picture_url": "https://cdn/a.jpg",
        }

    def test_missing_avatar(self) -> None:
        assert translate.avatar_url(_user(urls=[])) is None
        assert translate.avatar_url(SimpleNamespace()) is None

    def test_gift(self) -> None:
        raw = SimpleNamespace(
            user=_user("bob"),
            gift=SimpleNamespace(name="Rose", type=1, diamond_count=10),
            repeat_count=5,
            repeat_end=1,
        )

        event = translate.to_gift(raw)

        assert isinstance(event, GiftEvent)
        assert event.user_id == "12345"
        assert event.gift_name == "Rose"
        assert event.is_streak_tick is False
        assert event.total_value == 50

    def test_gift_without_metadata_is_zero_value(self) -> None:
        event = translate.to_gift(SimpleNamespace(user=_user("bob"), repeat_count=3, repeat_end=True))

        assert event.total_value == 0

    def test_like(self) -> None:
        event = translate.to_like(SimpleNamespace(user=_user(), count=7, total=900))

        assert isinstance(event, LikeEvent)
        assert event.like_count == 7

    def test_chat(self) -> None:
        event = translate.to_chat(SimpleNamespace(user=_user("eve"), comment=" GANTI "))

        assert event.unique_id == "eve"
        assert event.comment == " GANTI "

    def test_room_user(self) -> None:
        assert translate.to_room_user(SimpleNamespace(m_total=88)).viewer_count == 88
        assert translate.to_room_user(SimpleNamespace(viewer_count=5)).viewer_count == 5

    def test_envelope_uses_to_dict(self) -> None:
        raw = SimpleNamespace(to_dict=lambda: {"envelopeInfo": {"diamondCount": 100}})

        assert translate.to_envelope(raw).data == {"envelopeInfo": {"diamondCount": 100}}

    def test_stream_end(self) -> None:
        assert translate.to_stream_end(SimpleNamespace(action=3)).action_id == 3


class TestLiveEventParsing:
    """原始字典按 kind 解析，数值字段宽松处理。"""

    def test_discriminated_parse(self) -> None:
        event = parse_live_event({"kind": "like", "uniqueId": "alice", "likeCount": "4"})

        assert isinstance(event, LikeEvent)
        assert event.like_count == 4

    def test_bad_numbers_become_zero(self) -> None:
        event = parse_live_event({"kind": "like", "uniqueId": "alice", "likeCount": -9})
        assert event.like_count == 0

        event = parse_live_event({"kind": "like", "uniqueId": "alice", "likeCount": None})
        assert event.like_count == 0

    def test_repeat_end_flag(self) -> None:
        event = parse_live_event(
            {"kind": "gift", "uniqueId": "b", "giftType": 1, "repeatEnd": "true", "repeatCount": 2},
        )

        assert event.repeat_end is True
