"""
tests.test_session_store
~~~~~~~~~~~~~~~~~~~~~~~~

SessionStore 观众计数单元测试。
"""
from __future__ import annotations

from app.services.session_store import SessionStore


class TestSessionStore:
    """测试计数累加、默认值与重置。"""

    def test_unknown_user_reads_zero(self) -> None:
        """未出现过的用户应返回全 0。"""
        snapshot = SessionStore().snapshot("nobody")

        assert snapshot.likes == 0
        assert snapshot.gift_value == 0
        assert snapshot.shares == 0
        assert snapshot.avatar is None

    def test_likes_accumulate_to_sum(self) -> None:
        """多次点赞的累计值等于所有增量之和。"""
        store = SessionStore()
        deltas = [3, 0, 7, 1, 15]

        totals = [store.record_like("alice", n) for n in deltas]

        assert totals == [3, 3, 10, 11, 26]
        assert store.snapshot("alice").likes == sum(deltas)

    def test_negative_delta_is_ignored(self) -> None:
        """负数增量不应让计数减少。"""
        store = SessionStore()
        store.record_like("alice", 5)

        assert store.record_like("alice", -3) == 5
        assert store.record_gift_value("alice", -10) == 0

    def test_gift_value_and_shares(self) -> None:
        store = SessionStore()

        store.record_gift_value("bob", 50)
        store.record_gift_value("bob", 20)
        store.record_share("bob")

        snapshot = store.snapshot("bob")
        assert snapshot.gift_value == 70
        assert snapshot.shares == 1

    def test_users_are_independent(self) -> None:
        store = SessionStore()
        store.record_like("alice", 2)
        store.record_like("bob", 9)

        assert store.snapshot("alice").likes == 2
        assert store.snapshot("bob").likes == 9
        assert sorted(store.users()) == ["alice", "bob"]

    def test_avatar_overwritten_but_not_cleared(self) -> None:
        """头像随事件覆盖，空值不会清掉已有头像。"""
        store = SessionStore()
        store.set_avatar("alice", "a.jpg")
        store.set_avatar("alice", "b.jpg")
        store.set_avatar("alice", None)

        assert store.avatar("alice") == "b.jpg"

    def test_snapshot_is_a_copy(self) -> None:
        store = SessionStore()
        store.record_like("alice", 1)

        snapshot = store.snapshot("alice")
        snapshot.likes = 100

        assert store.snapshot("alice").likes == 1

    def test_reset_clears_everything(self) -> None:
        store = SessionStore()
        store.record_like("alice", 4)

        store.reset()

        assert len(store) == 0
        assert store.snapshot("alice").likes == 0
