from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from weekly_playlist.config import Settings
from weekly_playlist.models.messages import RawMessage


def make_message(
    message_id: str,
    content: str = "",
    *,
    author_id: str = "559136461311417979",
    username: str = "fake_user",
    bot: bool = False,
    timestamp: datetime | None = None,
    type: int = 0,
    referenced_message_id: str | None = None,
) -> RawMessage:
    return RawMessage(
        id=message_id,
        author_id=author_id,
        author_username=username,
        author_is_bot=bot,
        content=content,
        timestamp=timestamp or datetime(2023, 5, 3, 12, 0, tzinfo=timezone.utc),
        type=type,
        referenced_message_id=referenced_message_id,
    )


def track_ids(prefix: str, count: int) -> list[str]:
    return [f"{prefix}{index:02d}" for index in range(count)]


def playlist_items(ids: list[str]) -> list[dict]:
    return [
        {"track": {"id": track_id, "uri": f"spotify:track:{track_id}", "name": f"Song {track_id}"}}
        for track_id in ids
    ]


class FakeDiscord:
    """Records calls; list_messages serves the queued pages in order"""

    def __init__(self, pages: list[list[RawMessage]] | None = None) -> None:
        self.pages = list(pages or [])
        self.list_calls: list[dict] = []
        self.created: list[str] = []
        self.pinned: list[RawMessage] = []
        self.pin_calls: list[tuple[str, bool]] = []
        self.unpin_calls: list[str] = []

    def list_messages(self, channel_id, after=None, before=None, limit=100):
        self.list_calls.append({"channel_id": channel_id, "after": after, "before": before, "limit": limit})
        return self.pages.pop(0) if self.pages else []

    def create_message(self, channel_id, content):
        self.created.append(content)
        return {"id": f"posted{len(self.created)}", "content": content}

    def get_pinned_messages(self, channel_id):
        return list(self.pinned)

    def pin_message(self, channel_id, message_id, delete_pin_notification=False):
        self.pin_calls.append((message_id, delete_pin_notification))

    def unpin_message(self, channel_id, message_id):
        self.unpin_calls.append(message_id)


class FakeSpotify:
    """In-memory Spotify: albums and playlists are dicts of track id lists"""

    def __init__(
        self,
        albums: dict[str, list[str]] | None = None,
        playlists: dict[str, list[dict]] | None = None,
        owner_playlists: list[dict] | None = None,
    ) -> None:
        self.albums = albums or {}
        self.playlists = playlists or {}
        self.owner_playlists = owner_playlists or []
        self.album_calls: list[list[str]] = []
        self.playlist_calls: list[str] = []
        self.playlist_page_calls: list[tuple[int, int]] = []
        self.removed: list[tuple[str, list[str]]] = []
        self.added: list[tuple[str, list[str]]] = []
        self.details: list[tuple[str, dict]] = []
        self.created: list[tuple[str, dict]] = []

    def get_several_albums(self, album_ids):
        self.album_calls.append(list(album_ids))
        return {album_id: list(self.albums.get(album_id, [])) for album_id in album_ids}

    def get_playlist_items(self, playlist_id):
        self.playlist_calls.append(playlist_id)
        return list(self.playlists.get(playlist_id, []))

    def get_current_user_playlists(self, offset=0, limit=50):
        self.playlist_page_calls.append((offset, limit))
        return {"items": self.owner_playlists[offset:offset + limit]}

    def get_current_user_profile(self):
        return {"id": "bot_owner"}

    def create_playlist(self, user_id, options):
        self.created.append((user_id, options))
        playlist = {
            "id": "newplaylist",
            "name": options["name"],
            "external_urls": {"spotify": "https://open.spotify.com/playlist/newplaylist"},
        }
        self.owner_playlists.append(playlist)
        return playlist

    def remove_playlist_items(self, playlist_id, track_uris):
        self.removed.append((playlist_id, list(track_uris)))
        self.playlists[playlist_id] = []

    def change_playlist_details(self, playlist_id, options):
        self.details.append((playlist_id, options))

    def add_items_to_playlist(self, playlist_id, track_uris):
        self.added.append((playlist_id, list(track_uris)))
        ids = [uri.rsplit(":", 1)[-1] for uri in track_uris]
        self.playlists.setdefault(playlist_id, []).extend(playlist_items(ids))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DISCORD_TOKEN="discord-token",
        DISCORD_CHANNEL_ID="1234",
        PLAYLIST_NAME="Weekly Mix",
        SPOTIFY_CLIENT_ID="client-id",
        SPOTIFY_CLIENT_SECRET="client-secret",
        LOG_FILE=None,
        _env_file=None,
    )


@pytest.fixture
def week_timestamp():
    """A moment inside the week of Monday 2023-05-01"""
    def _at(days: float = 2, hours: float = 0) -> datetime:
        return datetime(2023, 5, 1, tzinfo=timezone.utc) + timedelta(days=days, hours=hours)
    return _at
