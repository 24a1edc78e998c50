"""Entry point for the weekly playlist run"""
import logging
import sys
import traceback

from weekly_playlist.config import Settings, get_settings
from weekly_playlist.publisher import PlaylistPublisher
from weekly_playlist.services.discord import DiscordAPI
from weekly_playlist.services.spotify import SpotifyAPI
from weekly_playlist.services.spotify_auth import SpotifyAuthSession
from weekly_playlist.utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding='utf-8'))
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='[%(asctime)s] %(levelname)s: %(message)s',
        handlers=handlers,
    )


def build_publisher(settings: Settings) -> PlaylistPublisher:
    timeout = settings.REQUEST_TIMEOUT_SECONDS
    auth = SpotifyAuthSession(
        client_id=settings.SPOTIFY_CLIENT_ID,
        client_secret=settings.SPOTIFY_CLIENT_SECRET,
        tokens_path=settings.SPOTIFY_TOKENS_FILE,
        refresh_token=settings.SPOTIFY_REFRESH_TOKEN,
        token_url=settings.SPOTIFY_TOKEN_URL,
        timeout=timeout,
    )
    spotify = SpotifyAPI(auth, base_url=settings.SPOTIFY_API_URL, timeout=timeout)
    discord = DiscordAPI(settings.DISCORD_TOKEN, base_url=settings.DISCORD_API_URL, timeout=timeout)
    return PlaylistPublisher(settings, discord, spotify)


def run() -> None:
    """Run one weekly pass; exit status 1 on any error"""
    settings = get_settings()
    configure_logging(settings)

    has_errors = False
    logger.info("Weekly playlist bot started")
    try:
        result = build_publisher(settings).run()
        logger.info(f"Run complete: {json_dumps(result.model_dump())}")
        print(json_dumps(result.model_dump(), indent=2))
    except Exception as e:
        has_errors = True
        logger.error(f"Error during weekly playlist run: {e}")
        traceback.print_exc()
    logger.info(f"Weekly playlist bot exited {'with' if has_errors else 'without'} errors")
    sys.exit(1 if has_errors else 0)


if __name__ == "__main__":
    run()
