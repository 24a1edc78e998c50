"""Spotify link extraction from chat messages"""
import logging
import re
from typing import Dict, Iterable, List, Tuple
from urllib.parse import urlsplit

from weekly_playlist.models.contribution import ContributorLinkSet, SpotifyIds
from weekly_playlist.models.messages import RawMessage

logger = logging.getLogger(__name__)

SPOTIFY_WEB_DOMAIN = 'open.spotify.com'

_URL_RE = re.compile(r"(?:https?://|\bopen\.spotify\.com/)[^\s<>\"'`]+", re.IGNORECASE)
_TRAILING_PUNCTUATION = '.,;:!?)]}'
_REPEATED_SLASHES_RE = re.compile(r"/{2,}")
_LOCALE_SEGMENT_RE = re.compile(r"^intl-[a-z]{2}(?:-[a-z]{2})?$", re.IGNORECASE)
_SPOTIFY_ID_RE = re.compile(r"^[0-9A-Za-z]+$")


def strip_query_parameters(url: str) -> str:
    """
    Normalize a url found in text: drop query string and fragment, collapse
    repeated slashes in the path, drop a trailing slash, lowercase the host.
    """
    if '://' not in url:
        url = f'https://{url}'
    parts = urlsplit(url)
    path = _REPEATED_SLASHES_RE.sub('/', parts.path).rstrip('/')
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{path}"


def find_urls(text: str) -> List[str]:
    """Every url-shaped substring of text, normalized, in order of appearance"""
    urls = []
    for match in _URL_RE.finditer(text or ''):
        candidate = match.group(0).rstrip(_TRAILING_PUNCTUATION)
        if not candidate:
            continue
        try:
            urls.append(strip_query_parameters(candidate))
        except ValueError as e:
            logger.debug(f"Skipping unparseable url {candidate!r}: {e}")
    return urls


def is_spotify_url(url: str) -> bool:
    try:
        return urlsplit(url).hostname == SPOTIFY_WEB_DOMAIN
    except ValueError:
        return False


def extract_spotify_urls_and_user_data(messages: Iterable[RawMessage]) -> Tuple[ContributorLinkSet, Dict[str, str]]:
    """
    Group the Spotify links of non-bot messages by author.

    Returns (user id -> links in order shared, user id -> first username seen).
    Links are not deduplicated here.
    """
    user_spotify_urls: ContributorLinkSet = {}
    user_id_to_username: Dict[str, str] = {}

    for message in messages:
        if message.author_is_bot:
            continue

        spotify_urls = [url for url in find_urls(message.content) if is_spotify_url(url)]
        user_spotify_urls.setdefault(message.author_id, []).extend(spotify_urls)
        user_id_to_username.setdefault(message.author_id, message.author_username)

    link_count = sum(len(urls) for urls in user_spotify_urls.values())
    logger.info(f"Found {link_count} Spotify links from {len(user_spotify_urls)} users")
    return user_spotify_urls, user_id_to_username


def get_ids_from_external_urls(urls: Iterable[str]) -> SpotifyIds:
    """
    Get the id portion of "https://open.spotify.com/<type>/<id>" urls, by type.

    Paths of any other shape (artists, shows, malformed ids, ...) are ignored.
    """
    ids = SpotifyIds()
    for url in urls:
        try:
            path = urlsplit(url).path
        except ValueError as e:
            logger.debug(f"Ignoring unparseable url {url!r}: {e}")
            continue
        components = [part for part in path.split('/') if part]  # e.g. ['playlist', '68wXeUJO6sv1aXVm5uOFCk']
        if components and _LOCALE_SEGMENT_RE.match(components[0]):
            components = components[1:]
        if len(components) < 2:
            continue

        item_type, item_id = components[0], components[1]
        if not _SPOTIFY_ID_RE.match(item_id):
            logger.debug(f"Ignoring malformed Spotify url: {url}")
            continue
        if item_type == 'track':
            ids.tracks.append(item_id)
        elif item_type == 'album':
            ids.albums.append(item_id)
        elif item_type == 'playlist':
            ids.playlists.append(item_id)
    return ids
