"""Spotify OAuth token management"""
import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import requests

from weekly_playlist.errors import AuthorizationError, TransportError
from weekly_playlist.models.messages import parse_datetime
from weekly_playlist.utils.json_encoder import DateTimeEncoder

logger = logging.getLogger(__name__)

# Refresh this long before the access token actually expires
EXPIRY_MARGIN = timedelta(seconds=60)


@dataclass
class SpotifyTokens:
    """Access/refresh token pair with the instant the access token stops being valid"""
    access_token: Optional[str]
    refresh_token: str
    expire_after: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.access_token is None or now + EXPIRY_MARGIN >= self.expire_after


class SpotifyAuthSession:
    """
    Owns the Spotify credentials for one process.

    Tokens are read from tokens_path (or seeded from a configured refresh
    token) on first use and refreshed whenever the access token is about to
    expire; refreshed tokens are written back to tokens_path.
    """

    def __init__(self, client_id: str, client_secret: str, tokens_path: str,
                 refresh_token: Optional[str] = None,
                 token_url: str = "https://accounts.spotify.com/api/token",
                 timeout: float = 15, session: Optional[requests.Session] = None):
        if not client_id or not client_secret:
            raise ValueError("Spotify client id and secret are required")
        self.client_id = client_id
        self.client_secret = client_secret
        self.tokens_path = tokens_path
        self.seed_refresh_token = refresh_token
        self.token_url = token_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._tokens: Optional[SpotifyTokens] = None
        self._lock = threading.Lock()

    def get_access_token(self) -> str:
        """Current access token, refreshing it first when needed"""
        with self._lock:
            if self._tokens is None:
                self._tokens = self._load_tokens()
            if self._tokens.is_expired():
                logger.info("Spotify access token missing or about to expire, refreshing...")
                self._tokens = self._refresh(self._tokens)
                self._save_tokens(self._tokens)
            return self._tokens.access_token

    def _load_tokens(self) -> SpotifyTokens:
        if os.path.exists(self.tokens_path):
            try:
                with open(self.tokens_path, 'r', encoding='utf-8') as f:
                    stored = json.load(f)
                return SpotifyTokens(
                    access_token=stored.get('access_token'),
                    refresh_token=stored['refresh_token'],
                    expire_after=parse_datetime(stored['expire_after']),
                )
            except (KeyError, ValueError) as e:
                logger.warning(f"Ignoring unreadable tokens file {self.tokens_path}: {e}")

        if not self.seed_refresh_token:
            raise AuthorizationError(
                f"No Spotify tokens found in {self.tokens_path} and SPOTIFY_REFRESH_TOKEN is not set"
            )
        logger.info("Seeding Spotify tokens from the configured refresh token")
        return SpotifyTokens(
            access_token=None,
            refresh_token=self.seed_refresh_token,
            expire_after=datetime.now(timezone.utc),
        )

    def _refresh(self, old_tokens: SpotifyTokens) -> SpotifyTokens:
        try:
            response = self.session.post(
                self.token_url,
                data={'grant_type': 'refresh_token', 'refresh_token': old_tokens.refresh_token},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Token refresh request failed: {e}", url=self.token_url) from e

        if response.status_code != 200:
            raise TransportError(
                f"Unexpected status: {response.status_code}",
                status_code=response.status_code,
                url=self.token_url,
                body=response.text[:500],
            )

        data = response.json()
        expire_after = datetime.now(timezone.utc) + timedelta(seconds=int(data['expires_in']))
        logger.info(f"Spotify access token refreshed, valid until {expire_after.isoformat()}")
        return SpotifyTokens(
            access_token=data['access_token'],
            # Spotify only sometimes rotates the refresh token
            refresh_token=data.get('refresh_token') or old_tokens.refresh_token,
            expire_after=expire_after,
        )

    def _save_tokens(self, tokens: SpotifyTokens) -> None:
        with open(self.tokens_path, 'w', encoding='utf-8') as f:
            json.dump(tokens.__dict__, f, indent=2, cls=DateTimeEncoder)
