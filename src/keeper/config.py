from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present as early as possible
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore any other env vars we don't model explicitly
    )

    # Discord
    discord_token: str  # looks for `DISCORD_TOKEN`
    owner_id: int  # `OWNER_ID`, the only user allowed to run owner commands

    # Flat-file state (afk.json, autorole.json, blacklist.json, welcome.json)
    data_dir: Path = Path("data")  # `DATA_DIR`

    log_level: str = "INFO"  # `LOG_LEVEL`

    # Third-party lookups
    http_timeout: float = 10.0  # `HTTP_TIMEOUT`, seconds

    # Web server (health/status only)
    web_enabled: bool = True  # `WEB_ENABLED`
    host: str = "0.0.0.0"  # `HOST`
    port: int = 8000  # `PORT`


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance to avoid re-parsing env vars."""

    return Settings()
