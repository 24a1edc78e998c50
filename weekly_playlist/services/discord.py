"""Discord REST API integration service"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

import requests

from weekly_playlist.errors import PinNotificationNotFound
from weekly_playlist.models.messages import MESSAGE_TYPE_CHANNEL_PINNED_MESSAGE, RawMessage
from weekly_playlist.services.http import JsonApiClient

logger = logging.getLogger(__name__)

DISCORD_EPOCH_MS = 1420070400000
# Discord caps message content at 2000 characters
MAX_MESSAGE_LENGTH = 2000
# How far back to look for the "pinned a message" notification
PIN_NOTIFICATION_SEARCH_LIMIT = 10


def snowflake_from_datetime(date: Optional[datetime] = None) -> str:
    """Smallest snowflake id that could have been created at the given time"""
    if date is None:
        date = datetime.now().astimezone()
    unix_ms = int(date.timestamp() * 1000)
    return str((unix_ms - DISCORD_EPOCH_MS) << 22)


class DiscordAPI(JsonApiClient):
    """Handles Discord channel, message and pin endpoints"""

    success_statuses = (200, 204)

    def __init__(self, token: str, base_url: str = "https://discord.com/api/v10", timeout: float = 15,
                 session: Optional[requests.Session] = None):
        if not token:
            raise ValueError("Discord token cannot be empty")
        super().__init__(base_url, timeout=timeout, session=session)
        self.session.headers.update({
            'Authorization': f'Bot {token}',
            'User-Agent': 'DiscordBot (weekly-playlist-bot, 1.0.0)',
        })

    def list_messages(self, channel_id: str, after: Optional[str] = None, before: Optional[str] = None,
                      limit: int = 100) -> List[RawMessage]:
        """One page of channel history anchored by an after/before snowflake cursor"""
        params: Dict[str, object] = {'limit': limit}
        if after is not None:
            params['after'] = after
        if before is not None:
            params['before'] = before
        response_data = self._make_request('get', f'channels/{channel_id}/messages', params=params)
        return [RawMessage.from_api(message) for message in response_data or []]

    def create_message(self, channel_id: str, content: str) -> Dict:
        """Send a text message to a channel"""
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message content is {len(content)} characters, Discord allows {MAX_MESSAGE_LENGTH}")
        return self._make_request('post', f'channels/{channel_id}/messages', payload={'content': content})

    def get_pinned_messages(self, channel_id: str) -> List[RawMessage]:
        response_data = self._make_request('get', f'channels/{channel_id}/pins')
        return [RawMessage.from_api(message) for message in response_data or []]

    def pin_message(self, channel_id: str, message_id: str, delete_pin_notification: bool = False) -> None:
        self._make_request('put', f'channels/{channel_id}/pins/{message_id}')
        logger.info(f"Pinned message {message_id} in channel {channel_id}")
        if delete_pin_notification:
            self._delete_recent_pin_notification(channel_id, message_id)

    def unpin_message(self, channel_id: str, message_id: str) -> None:
        self._make_request('delete', f'channels/{channel_id}/pins/{message_id}')
        logger.info(f"Unpinned message {message_id} in channel {channel_id}")

    def delete_message(self, channel_id: str, message_id: str) -> None:
        self._make_request('delete', f'channels/{channel_id}/messages/{message_id}')

    def _delete_recent_pin_notification(self, channel_id: str, pinned_message_id: str) -> None:
        recent_messages = self.list_messages(
            channel_id,
            before=snowflake_from_datetime(),
            limit=PIN_NOTIFICATION_SEARCH_LIMIT,
        )
        notification = next(
            (message for message in recent_messages
             if message.type == MESSAGE_TYPE_CHANNEL_PINNED_MESSAGE
             and message.referenced_message_id == pinned_message_id),
            None,
        )
        if notification is None:
            raise PinNotificationNotFound(pinned_message_id)
        self.delete_message(channel_id, notification.id)
        logger.debug(f"Deleted pin notification {notification.id} for message {pinned_message_id}")
