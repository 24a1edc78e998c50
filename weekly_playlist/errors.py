"""Error types raised by the weekly playlist pipeline"""
from typing import Optional


class WeeklyPlaylistError(Exception):
    """Base class for all pipeline errors"""


class TransportError(WeeklyPlaylistError):
    """A remote API call did not return a success status"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 url: Optional[str] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body


class AuthorizationError(WeeklyPlaylistError):
    """No usable Spotify credentials are available"""


class PinNotificationNotFound(WeeklyPlaylistError):
    """The "pinned a message" notification for a freshly pinned message is missing"""

    def __init__(self, message_id: str):
        super().__init__(f"Unable to find pin notification for message id:{message_id}")
        self.message_id = message_id
