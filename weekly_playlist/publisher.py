"""Weekly playlist run: collect links, select tracks, publish and announce"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from weekly_playlist.config import Settings
from weekly_playlist.history import get_messages_in_channel
from weekly_playlist.links import extract_spotify_urls_and_user_data
from weekly_playlist.models.contribution import ContributionMap, TimeWindow
from weekly_playlist.models.result import (
    RUN_STATUS_NO_CONTRIBUTIONS,
    RUN_STATUS_PUBLISHED,
    PlaylistRunResult,
)
from weekly_playlist.resolver import TrackIdResolver
from weekly_playlist.selection import ContributionSelector
from weekly_playlist.services.discord import MAX_MESSAGE_LENGTH, DiscordAPI
from weekly_playlist.services.spotify import SpotifyAPI
from weekly_playlist.week import format_us_date, format_us_datetime, get_previous_week_dates

logger = logging.getLogger(__name__)

# Start of every announcement; used to find last week's pinned announcement
ANNOUNCEMENT_PREFIX = 'Playlist for the week of '
CONTRIBUTORS_HEADER = 'Contributors:'
CODE_FENCE = '```'
TRUNCATION_MARKER = '...'


def spotify_track_uri(track_id: str) -> str:
    return f'spotify:track:{track_id}'


def build_contributor_messages(playlist_items: List[Dict], contributions: ContributionMap,
                               max_length: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Numbered "<track name> - <contributors>" lines in playlist order, wrapped in
    code blocks and split into as many messages as the length limit requires.
    """
    lines = []
    for item in playlist_items:
        track = item.get('track') or {}
        track_id = track.get('id')
        if track_id in contributions:
            lines.append(f"{len(lines) + 1}. {track.get('name', track_id)} - {', '.join(contributions[track_id])}")

    messages = []
    opening = f'{CONTRIBUTORS_HEADER}{CODE_FENCE}\n'
    # longest line that still fits in a message on its own
    max_line_length = max_length - len(opening) - 1 - len(CODE_FENCE)
    current = opening
    for line in lines:
        if len(line) > max_line_length:
            line = line[:max_line_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER
        if len(current) + len(line) + 1 + len(CODE_FENCE) > max_length and current != opening:
            messages.append(current + CODE_FENCE)
            current = f'{CODE_FENCE}\n'
        current += f'{line}\n'
    messages.append(current + CODE_FENCE)
    return messages


class PlaylistPublisher:
    """Runs one weekly pass over the channel and rewrites the shared playlist"""

    def __init__(self, settings: Settings, discord: DiscordAPI, spotify: SpotifyAPI,
                 resolver: Optional[TrackIdResolver] = None,
                 selector: Optional[ContributionSelector] = None):
        self.settings = settings
        self.discord = discord
        self.spotify = spotify
        self.resolver = resolver
        self.selector = selector or ContributionSelector()

    def run(self, target_date: Optional[Union[str, datetime]] = None) -> PlaylistRunResult:
        """Build and publish the playlist for the week before target_date (default: now)"""
        channel_id = self.settings.DISCORD_CHANNEL_ID

        # --- Stage 1: Retrieve last week's messages ---
        window = get_previous_week_dates(target_date)
        logger.info(f"Collecting messages from {window.start.isoformat()} to {window.end.isoformat()}")
        messages = get_messages_in_channel(
            self.discord, channel_id, window.start, window.end, limit=self.settings.MESSAGE_PAGE_SIZE
        )

        # --- Stage 2: Extract Spotify links per user ---
        user_spotify_urls, user_id_to_username = extract_spotify_urls_and_user_data(messages)

        # --- Stage 3: Resolve links into track ids ---
        resolver = self.resolver or TrackIdResolver(self.spotify, max_workers=self.settings.PLAYLIST_FETCH_WORKERS)
        user_track_ids = resolver.resolve(user_spotify_urls)
        contributor_count = sum(1 for bundle in user_track_ids.values() if bundle.unique_track_count > 0)

        if contributor_count == 0:
            logger.info("No contributions found for this week. Skipping playlist update.")
            return PlaylistRunResult(
                status=RUN_STATUS_NO_CONTRIBUTIONS,
                week_start=window.start,
                week_end=window.end,
                message_count=len(messages),
            )

        # --- Stage 4: Select tracks ---
        contributions = self.selector.build_playlist(user_track_ids, user_id_to_username)

        # --- Stage 5: Prepare the playlist ---
        description = (
            f"User contributions for the week of {self._week_label(window)}. "
            f"Last updated: {format_us_datetime(datetime.now().astimezone())}"
        )
        playlist_id, playlist_url = self.prepare_playlist(self.settings.PLAYLIST_NAME, description)

        # --- Stage 6: Add the selected tracks ---
        track_uris = [spotify_track_uri(track_id) for track_id in contributions.track_ids()]
        self.spotify.add_items_to_playlist(playlist_id, track_uris)
        logger.info(f"Added {len(track_uris)} tracks to playlist {playlist_id}")

        # --- Stage 7: Announce ---
        playlist_items = self.spotify.get_playlist_items(playlist_id)
        announcement = f"{ANNOUNCEMENT_PREFIX}{self._week_label(window)}\n{playlist_url}"
        announcement_message = self.discord.create_message(channel_id, announcement)
        for contributor_message in build_contributor_messages(playlist_items, contributions):
            self.discord.create_message(channel_id, contributor_message)

        # --- Stage 8: Replace last week's pinned announcement ---
        announcement_id = str(announcement_message['id'])
        self.unpin_previous_announcements(channel_id, exclude_message_id=announcement_id)
        self.discord.pin_message(channel_id, announcement_id, delete_pin_notification=True)

        logger.info("Weekly playlist published.")
        return PlaylistRunResult(
            status=RUN_STATUS_PUBLISHED,
            week_start=window.start,
            week_end=window.end,
            message_count=len(messages),
            contributor_count=contributor_count,
            playlist_id=playlist_id,
            playlist_url=playlist_url,
            contributions=contributions.to_dict(),
            announcement_message_id=announcement_id,
        )

    def prepare_playlist(self, playlist_name: str, playlist_description: str = '') -> Tuple[str, str]:
        """
        Find the bot owner's playlist with the given name and empty it, or create it.

        Returns:
            Tuple[str, str]: (playlist_id, playlist_url)
        """
        playlist = self.find_playlist(playlist_name)

        if playlist:
            items = self.spotify.get_playlist_items(playlist['id'])
            track_uris = [item['track']['uri'] for item in items if (item.get('track') or {}).get('uri')]
            if track_uris:
                self.spotify.remove_playlist_items(playlist['id'], track_uris)
                logger.info(f"Removed {len(track_uris)} tracks from playlist {playlist['id']}")
            self.spotify.change_playlist_details(playlist['id'], {'description': playlist_description})
        else:
            owner_id = self.spotify.get_current_user_profile()['id']
            playlist = self.spotify.create_playlist(owner_id, {
                'name': playlist_name,
                'public': False,
                'collaborative': False,
                'description': playlist_description,
            })
            logger.info(f"Created playlist {playlist['id']} named {playlist_name!r}")

        return playlist['id'], playlist['external_urls']['spotify']

    def find_playlist(self, playlist_name: str) -> Optional[Dict]:
        """Page through the owner's playlists looking for an exact name match"""
        limit = self.settings.PLAYLIST_PAGE_SIZE
        offset = 0
        while True:
            page = self.spotify.get_current_user_playlists(offset=offset, limit=limit)
            items = [playlist for playlist in page.get('items') or [] if playlist]
            for playlist in items:
                if playlist.get('name') == playlist_name:
                    return playlist
            if len(items) < limit:
                return None
            offset += limit

    def unpin_previous_announcements(self, channel_id: str, exclude_message_id: Optional[str] = None) -> None:
        for message in self.discord.get_pinned_messages(channel_id):
            if (message.author_is_bot and message.content.startswith(ANNOUNCEMENT_PREFIX)
                    and message.id != exclude_message_id):
                self.discord.unpin_message(channel_id, message.id)

    @staticmethod
    def _week_label(window: TimeWindow) -> str:
        return f"{format_us_date(window.start)} - {format_us_date(window.last_day)}"
