"""Spotify API integration service"""
import logging
from typing import Any, Dict, List, Optional

import requests

from weekly_playlist.services.http import JsonApiClient
from weekly_playlist.services.spotify_auth import SpotifyAuthSession

logger = logging.getLogger(__name__)

# --- Endpoint limits ---
# Max ids accepted by GET /albums
MAX_ALBUMS_PER_REQUEST = 20
# Max uris accepted by POST/DELETE /playlists/{id}/tracks
MAX_ITEMS_PER_REQUEST = 100
# Max page size for playlist items
PLAYLIST_ITEMS_PAGE_SIZE = 100
# ------------------------


def _chunks(values: List[Any], size: int) -> List[List[Any]]:
    return [values[i:i + size] for i in range(0, len(values), size)]


class SpotifyAPI(JsonApiClient):
    """Handles all Spotify API interactions used by the weekly playlist"""

    success_statuses = (200, 201)

    def __init__(self, auth: SpotifyAuthSession, base_url: str = "https://api.spotify.com/v1",
                 timeout: float = 15, session: Optional[requests.Session] = None):
        super().__init__(base_url, timeout=timeout, session=session)
        self.auth = auth

    def _auth_headers(self) -> Dict[str, str]:
        return {'Authorization': f'Bearer {self.auth.get_access_token()}'}

    def _collect_pages(self, page: Dict[str, Any]) -> List[Dict]:
        """Follow a paging object's `next` links and return every item in order"""
        items = list(page.get('items') or [])
        next_url = page.get('next')
        while next_url:
            page = self._make_request('get', next_url)
            items.extend(page.get('items') or [])
            next_url = page.get('next')
        return items

    def get_current_user_profile(self) -> Dict[str, Any]:
        """Get the profile of the account owning the tokens"""
        user_info = self._make_request('get', 'me')
        if not isinstance(user_info, dict) or 'id' not in user_info:
            logger.error(f"Invalid user info response received: {user_info}")
            raise ValueError("Failed to fetch valid user info from Spotify.")
        return user_info

    def get_current_user_playlists(self, offset: int = 0, limit: int = 50) -> Dict[str, Any]:
        """One page of the current user's playlists"""
        return self._make_request('get', 'me/playlists', params={'limit': limit, 'offset': offset})

    def get_playlist_items(self, playlist_id: str) -> List[Dict]:
        """All items of a playlist in playlist order; an item's `track` may be null"""
        first_page = self._make_request(
            'get', f'playlists/{playlist_id}/tracks', params={'limit': PLAYLIST_ITEMS_PAGE_SIZE}
        )
        items = self._collect_pages(first_page)
        logger.debug(f"Fetched {len(items)} items for playlist {playlist_id}")
        return items

    def get_several_albums(self, album_ids: List[str]) -> Dict[str, List[str]]:
        """
        Map each album id to its ordered track ids.

        Ids are sent in batches of the endpoint maximum; albums Spotify does
        not know about map to an empty list.
        """
        album_tracks: Dict[str, List[str]] = {}
        for batch in _chunks(list(album_ids), MAX_ALBUMS_PER_REQUEST):
            response_data = self._make_request('get', 'albums', params={'ids': ','.join(batch)})
            for album_id, album in zip(batch, response_data.get('albums') or []):
                if not isinstance(album, dict):
                    logger.warning(f"Album {album_id} was not found, treating it as empty")
                    album_tracks[album_id] = []
                    continue
                tracks = self._collect_pages(album.get('tracks') or {})
                album_tracks[album_id] = [track['id'] for track in tracks if track and track.get('id')]
        return album_tracks

    def remove_playlist_items(self, playlist_id: str, track_uris: List[str]) -> None:
        for batch in _chunks(list(track_uris), MAX_ITEMS_PER_REQUEST):
            self._make_request(
                'delete', f'playlists/{playlist_id}/tracks',
                payload={'tracks': [{'uri': uri} for uri in batch]},
            )

    def add_items_to_playlist(self, playlist_id: str, track_uris: List[str]) -> None:
        for batch in _chunks(list(track_uris), MAX_ITEMS_PER_REQUEST):
            self._make_request('post', f'playlists/{playlist_id}/tracks', payload={'uris': batch})

    def create_playlist(self, user_id: str, playlist_options: Dict[str, Any]) -> Dict[str, Any]:
        return self._make_request('post', f'users/{user_id}/playlists', payload=playlist_options)

    def change_playlist_details(self, playlist_id: str, playlist_options: Dict[str, Any]) -> None:
        self._make_request('put', f'playlists/{playlist_id}', payload=playlist_options)
