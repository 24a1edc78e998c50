"""Application configuration and environment settings"""
from functools import lru_cache
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Required settings
    DISCORD_TOKEN: str = Field(..., description="Discord bot token")
    DISCORD_CHANNEL_ID: str = Field(..., description="Channel scanned for links and used for announcements")
    PLAYLIST_NAME: str = Field(..., description="Name of the weekly playlist owned by the bot's Spotify account")
    SPOTIFY_CLIENT_ID: str = Field(..., description="Spotify application client ID")
    SPOTIFY_CLIENT_SECRET: str = Field(..., description="Spotify application client secret")

    # Spotify credentials storage
    SPOTIFY_REFRESH_TOKEN: Optional[str] = Field(None, description="Refresh token used when no tokens file exists yet")
    SPOTIFY_TOKENS_FILE: str = Field("tokens.json", description="File holding the current Spotify access/refresh tokens")

    # API endpoints
    SPOTIFY_API_URL: str = Field("https://api.spotify.com/v1", description="Spotify Web API base URL")
    SPOTIFY_TOKEN_URL: str = Field("https://accounts.spotify.com/api/token", description="Spotify token endpoint")
    DISCORD_API_URL: str = Field("https://discord.com/api/v10", description="Discord REST API base URL")

    # Optional settings with defaults
    MESSAGE_PAGE_SIZE: int = Field(100, description="Messages requested per Discord page (API max is 100)")
    PLAYLIST_PAGE_SIZE: int = Field(50, description="Playlists requested per page when looking up the weekly playlist")
    PLAYLIST_FETCH_WORKERS: int = Field(8, description="Concurrent playlist item fetches")
    REQUEST_TIMEOUT_SECONDS: float = Field(15, description="Timeout for every HTTP request")

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_FILE: Optional[str] = Field("info.log", description="Log file, empty to log to the console only")

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process"""
    return Settings()
