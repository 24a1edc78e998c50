"""Expansion of shared Spotify links into per-contributor track id sets"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List

from weekly_playlist.links import get_ids_from_external_urls
from weekly_playlist.models.contribution import ContributorLinkSet, TrackIdBundle
from weekly_playlist.services.spotify import SpotifyAPI

logger = logging.getLogger(__name__)


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


class TrackIdResolver:
    """
    Resolves track, album and playlist links into TrackIdBundles.

    Album and playlist contents are cached on the instance, so one resolver
    should be used for exactly one run.
    """

    def __init__(self, spotify: SpotifyAPI, max_workers: int = 8):
        self.spotify = spotify
        self.max_workers = max(1, max_workers)
        self.album_cache: Dict[str, List[str]] = {}
        self.playlist_cache: Dict[str, List[Dict]] = {}

    def resolve(self, user_spotify_urls: ContributorLinkSet) -> Dict[str, TrackIdBundle]:
        """Build a TrackIdBundle per contributor; any failed lookup aborts the whole resolution"""
        user_track_ids: Dict[str, TrackIdBundle] = {}
        for user_id, urls in user_spotify_urls.items():
            spotify_ids = get_ids_from_external_urls(urls)
            bundle = TrackIdBundle()

            for track_id in spotify_ids.tracks:
                bundle.add_single_track(track_id)

            self._cache_albums(spotify_ids.albums)
            for album_id in spotify_ids.albums:
                for track_id in self.album_cache[album_id]:
                    bundle.add_album_track(track_id)

            self._cache_playlists(spotify_ids.playlists)
            for playlist_id in spotify_ids.playlists:
                for item in self.playlist_cache[playlist_id]:
                    track = item.get('track') if isinstance(item, dict) else None
                    # removed and local tracks have no track object / id
                    if track and track.get('id'):
                        bundle.add_playlist_track(track['id'])

            logger.info(
                f"User {user_id}: {len(bundle.single_track_ids)} track, {len(bundle.album_track_ids)} album, "
                f"{len(bundle.playlist_track_ids)} playlist track ids ({bundle.unique_track_count} unique)"
            )
            user_track_ids[user_id] = bundle
        return user_track_ids

    def _cache_albums(self, album_ids: List[str]) -> None:
        album_ids_to_query = [album_id for album_id in _unique(album_ids) if album_id not in self.album_cache]
        if not album_ids_to_query:
            return
        logger.info(f"Fetching {len(album_ids_to_query)} albums")
        album_tracks = self.spotify.get_several_albums(album_ids_to_query)
        for album_id in album_ids_to_query:
            self.album_cache[album_id] = list(album_tracks.get(album_id, []))

    def _cache_playlists(self, playlist_ids: List[str]) -> None:
        playlist_ids_to_query = [
            playlist_id for playlist_id in _unique(playlist_ids) if playlist_id not in self.playlist_cache
        ]
        if not playlist_ids_to_query:
            return
        logger.info(f"Fetching {len(playlist_ids_to_query)} playlists")
        if len(playlist_ids_to_query) == 1 or self.max_workers == 1:
            for playlist_id in playlist_ids_to_query:
                self.playlist_cache[playlist_id] = self.spotify.get_playlist_items(playlist_id)
            return

        workers = min(self.max_workers, len(playlist_ids_to_query))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_playlist = {
                executor.submit(self.spotify.get_playlist_items, playlist_id): playlist_id
                for playlist_id in playlist_ids_to_query
            }
            try:
                for future in as_completed(future_to_playlist):
                    self.playlist_cache[future_to_playlist[future]] = future.result()
            except Exception:
                for future in future_to_playlist:
                    future.cancel()
                raise
