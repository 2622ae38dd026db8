"""
User registry.
"""

from typing import Optional

from roomsync.models.user import User


class UserRegistry:
    """Deduplicates sender identities across every room of a client.

    Entries live until ``forget`` or ``clear`` is called; nothing is evicted
    automatically.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def resolve(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            user = User(user_id)
            self._users[user_id] = user
        return user

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def forget(self, user_id: str) -> None:
        self._users.pop(user_id, None)

    def clear(self) -> None:
        self._users.clear()

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def __len__(self) -> int:
        return len(self._users)
