"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VoiceLedger application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        collection_api_base_url: Base URL of the remote classification and
            collection service (classify / search / update endpoints).
        capture_timeout_seconds: Hard limit on a single recording phase.
        auto_commit_seconds: Countdown before a write verdict is committed.
        ui_language: Language of user-visible status text ("zh" or "en").
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Collection service ---
    # Remote classifier + inventory/habit storage
    collection_api_base_url: str = "http://localhost:3000"
    collection_api_timeout: float = 30.0

    # --- Capture ---
    capture_language: str = "zh-CN"  # Passed to the speech engine on start
    capture_timeout_seconds: float = 30.0
    capture_stop_keyword: str = "over"  # Case-insensitive self-terminating token

    # --- Auto-commit ---
    auto_commit_seconds: int = 5

    # --- Presentation ---
    ui_language: str = "zh"  # "zh" or "en"
    service_base_url: str = "http://localhost:8000"  # Streamlit -> FastAPI

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
