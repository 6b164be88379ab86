"""
app.services.session_store
~~~~~~~~~~~~~~~~~~~~~~~~~~

观众互动计数存储 —— 按用户名累计点赞、礼物价值、分享次数，并记录最近头像。

所有写操作都是累加而非覆盖；负数增量按 0 处理，计数器只增不减。
未出现过的用户读取时返回全 0。
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class UserSession:
    """单个观众的累计数据。"""

    likes: int = 0
    gift_value: int = 0
    shares: int = 0
    avatar: str | None = None


class SessionStore:
    """进程内的观众数据表，随直播连接重置。"""

    def __init__(self) -> None:
        self._sessions: dict[str, UserSession] = {}

    def _entry(self, user: str) -> UserSession:
        session = self._sessions.get(user)
        if session is None:
            session = self._sessions[user] = UserSession()
        return session

    def record_like(self, user: str, count: int) -> int:
        """累加点赞数，返回新的累计值。"""
        session = self._entry(user)
        session.likes += max(count, 0)
        return session.likes

    def record_gift_value(self, user: str, value: int) -> int:
        """累加礼物价值，返回新的累计值。"""
        session = self._entry(user)
        session.gift_value += max(value, 0)
        return session.gift_value

    def record_share(self, user: str) -> int:
        """分享次数 +1，返回新的累计值。"""
        session = self._entry(user)
        session.shares += 1
        return session.shares

    def set_avatar(self, user: str, ref: str | None) -> None:
        """记录观众最近一次的头像地址（为空时不覆盖）。"""
        if ref:
            self._entry(user).avatar = ref

    def avatar(self, user: str) -> str | None:
        session = self._sessions.get(user)
        return session.avatar if session else None

    def snapshot(self, user: str) -> UserSession:
        """返回观众数据的副本；未知用户返回全 0。"""
        session = self._sessions.get(user)
        if session is None:
            return UserSession()
        return UserSession(
            likes=session.likes,
            gift_value=session.gift_value,
            shares=session.shares,
            avatar=session.avatar,
        )

    def users(self) -> list[str]:
        return list(self._sessions)

    def reset(self) -> None:
        """清空所有观众数据（切换直播间时调用）。"""
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
