from pydantic_settings import BaseSettings
import os
from pathlib import Path

# Load .env explicitly before creating Settings
try:
    from dotenv import load_dotenv
    import logging
    _logger = logging.getLogger(__name__)

    # Look for .env in api directory (parent of the clozedrill package)
    api_dir = Path(__file__).parent.parent.parent
    env_path = api_dir / ".env"

    if env_path.exists():
        load_dotenv(env_path, override=True)
        _logger.info(f"Loaded .env file from: {env_path}")
    else:
        current_env = Path(".env")
        if current_env.exists():
            load_dotenv(current_env, override=True)
            _logger.info(f"Loaded .env file from: {current_env.absolute()}")
        else:
            _logger.debug(f".env file not found at {env_path} or {current_env.absolute()}")
except OSError as e:
    import logging
    _logger = logging.getLogger(__name__)
    _logger.warning(f"Error loading .env file: {e}")


DEFAULT_DATABASE_URL = "sqlite:///./clozedrill.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = DEFAULT_DATABASE_URL

    # API
    api_v1_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["*"]

    # Practice engine
    default_target_goal: int = 10  # Used when a goal value is missing or invalid
    near_miss_threshold: float = 0.3  # Similarity above this is a free retry
    timezone: str = "UTC"  # IANA zone used to decide the user's calendar day

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        # Hosting platforms provide DATABASE_URL uppercase
        if not kwargs.get("database_url"):
            kwargs["database_url"] = os.getenv("DATABASE_URL", "") or DEFAULT_DATABASE_URL
        super().__init__(**kwargs)


# Create settings instance
settings = Settings()
