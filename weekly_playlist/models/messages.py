"""Domain models for Discord chat messages"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# https://discord.com/developers/docs/resources/channel#message-object-message-types
MESSAGE_TYPE_DEFAULT = 0
MESSAGE_TYPE_CHANNEL_PINNED_MESSAGE = 6


def parse_datetime(value) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime, assuming UTC when no offset is given"""
    if isinstance(value, datetime):
        dt = value
    elif value.endswith('Z'):
        dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    else:
        dt = datetime.fromisoformat(value)
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class RawMessage:
    """A chat message as returned by the channel history endpoint"""
    id: str
    author_id: str
    author_username: str
    author_is_bot: bool
    content: str
    timestamp: datetime
    type: int = MESSAGE_TYPE_DEFAULT
    referenced_message_id: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'RawMessage':
        """Build a message from a Discord message object"""
        author = payload.get('author') or {}
        reference = payload.get('message_reference') or {}
        return cls(
            id=str(payload['id']),
            author_id=str(author.get('id', '')),
            author_username=author.get('username', ''),
            author_is_bot=bool(author.get('bot', False)),
            content=payload.get('content') or '',
            timestamp=parse_datetime(payload['timestamp']),
            type=payload.get('type', MESSAGE_TYPE_DEFAULT),
            referenced_message_id=reference.get('message_id'),
        )
