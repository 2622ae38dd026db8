"""
roomsync error types.
"""

from typing import Any, Optional


class RoomSyncError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class MalformedEventError(RoomSyncError):
    """A raw event is missing a required field or has a field of the wrong shape."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("malformed_event", message, details)


class SessionError(RoomSyncError):
    def __init__(self, message: str, code: str = "session_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class SyncError(RoomSyncError):
    def __init__(self, message: str):
        super().__init__("sync_error", message)


class TransportError(RoomSyncError):
    def __init__(self, message: str, status_code: Optional[int] = None, errcode: Optional[str] = None):
        super().__init__("transport_error", message, {"status_code": status_code, "errcode": errcode})
        self.status_code = status_code
        self.errcode = errcode
