from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the absolute path to the project root
PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_DB_PATH = str(PROJECT_ROOT / "databases" / "talenthub.db")


class Settings(BaseSettings):
    """
    Centralized runtime configuration for TalentHub.
    All defaults are sensible for dev-mode; ops override via ENV
    (``TALENTHUB_DB_PATH``, ``TALENTHUB_LOG_LEVEL`` and so on).
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TALENTHUB_", extra="ignore")

    # --- Database ---
    db_path: str = Field(default=DEFAULT_DB_PATH)

    # --- Logging ---
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default=str(PROJECT_ROOT / "logs"))

    # --- Subscription ---
    default_plan: str = Field(default="free-trial")

    # --- Search ---
    recent_contact_days: int = Field(default=30)
    search_history_limit: int = Field(default=50)

    # --- API ---
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)


# Create a singleton instance
settings = Settings()
