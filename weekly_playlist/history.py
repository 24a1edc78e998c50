"""Time-windowed retrieval of channel history"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Union

from weekly_playlist.models.messages import RawMessage, parse_datetime
from weekly_playlist.services.discord import DISCORD_EPOCH_MS, DiscordAPI, snowflake_from_datetime

logger = logging.getLogger(__name__)

DISCORD_EPOCH = datetime.fromtimestamp(DISCORD_EPOCH_MS / 1000, tz=timezone.utc)

DateLike = Union[str, datetime]


def _to_aware(value: Optional[DateLike]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        return parse_datetime(value)
    if value.tzinfo is None:
        return value.astimezone()
    return value


def get_messages_in_channel(discord: DiscordAPI, channel_id: str, after: Optional[DateLike] = None,
                            before: Optional[DateLike] = None, limit: int = 100) -> List[RawMessage]:
    """
    Retrieve messages of a channel between after (inclusive) and before (exclusive).

    With both bounds, pages are requested with an `after` cursor until a page
    reaches a message at or past `before`, or a page comes back short; this is
    a best effort to collect every message of the window, in no particular
    order. With one bound (or none) a single page of up to `limit` messages
    is returned, anchored at that bound (or now).

    Any failed request aborts the fetch; no partial window is returned.
    """
    after = _to_aware(after)
    before = _to_aware(before)

    if after is not None and before is not None:
        return _get_messages_in_window(discord, channel_id, after, before, limit)
    if before is not None:
        return discord.list_messages(channel_id, before=snowflake_from_datetime(before), limit=limit)
    if after is not None:
        return discord.list_messages(channel_id, after=snowflake_from_datetime(after), limit=limit)
    return discord.list_messages(channel_id, before=snowflake_from_datetime(), limit=limit)


def _get_messages_in_window(discord: DiscordAPI, channel_id: str, after: datetime, before: datetime,
                            limit: int) -> List[RawMessage]:
    cursor = snowflake_from_datetime(after)
    messages: List[RawMessage] = []
    page_count = 0

    while True:
        page = discord.list_messages(channel_id, after=cursor, limit=limit)
        page_count += 1

        done_filtering = False
        latest_message_date = DISCORD_EPOCH
        latest_message_id = None
        for message in page:
            if message.timestamp < before:
                messages.append(message)
            else:
                done_filtering = True

            if message.timestamp > latest_message_date:
                latest_message_date = message.timestamp
                latest_message_id = message.id

        logger.debug(f"Page {page_count}: {len(page)} messages, next cursor {latest_message_id}")
        if len(page) < limit or done_filtering or latest_message_id is None:
            break
        cursor = latest_message_id

    logger.info(f"Fetched {len(messages)} messages in {page_count} pages from channel {channel_id}")
    return messages
