"""
Sender identities shared across rooms.
"""

from typing import Optional


class User:
    """A protocol user, shared by reference between every event it sent.

    Compared by identity: the registry hands out exactly one instance per id.
    """

    __slots__ = ("user_id", "room_names")

    def __init__(self, user_id: str, room_names: Optional[dict[str, str]] = None):
        self.user_id = user_id
        self.room_names: dict[str, str] = room_names if room_names is not None else {}

    def display_name(self, room_id: str) -> str:
        """Name this user goes by in ``room_id``, falling back to the user id."""
        return self.room_names.get(room_id) or self.user_id

    def __repr__(self) -> str:
        return f"User(user_id={self.user_id!r})"
