"""Application configuration with environment variable support.

All settings can be overridden via environment variables prefixed with
``FEATUREBOARD_``, or via a ``.env`` file in the project root.

Examples::

    FEATUREBOARD_PORT=9000 uv run featureboard start
    FEATUREBOARD_DB_URL=sqlite+aiosqlite:////var/data/board.db uv run featureboard start
    FEATUREBOARD_VOTE_MAX_ATTEMPTS=5 uv run featureboard start
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: two levels up from this file (backend/app/config.py -> featureboard/)
_BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Featureboard configuration — all values overridable via env vars."""

    model_config = SettingsConfigDict(
        env_prefix="FEATUREBOARD_",
        env_file=str(_BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8081"]

    # Storage
    data_dir: Path = _BASE_DIR / "data"
    db_url: str | None = None
    seed_features: bool = True

    # Voting
    vote_max_attempts: int = 3

    # Logging
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "featureboard.db"

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url
        return f"sqlite+aiosqlite:///{self.db_path}"


# Singleton instance — import this everywhere
settings = Settings()
