import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from visionterm.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # App Settings
    PROJECT_NAME: str = "visionterm"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Gateway (the key may also come from config.json, see ensure_api_key)
    REKA_API_KEY: str | None = None
    API_BASE_URL: str = "https://vision-agent.api.reka.ai"
    REQUEST_TIMEOUT: float = 30.0

    # Local state: config.json, history.db and the log file live here
    CONFIG_DIR: Path = Path("~/.config/visionterm")

    @field_validator("CONFIG_DIR", mode="before")
    @classmethod
    def expand_config_dir(cls, v) -> Path:
        return Path(v).expanduser()

    @field_validator("API_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if v else v

    @property
    def config_file(self) -> Path:
        return self.CONFIG_DIR / "config.json"

    @property
    def database_file(self) -> Path:
        return self.CONFIG_DIR / "history.db"

    @property
    def log_file(self) -> Path:
        return self.CONFIG_DIR / "visionterm.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

settings = Settings()


class AppConfig(BaseModel):
    """Contents of config.json."""
    api_key: str = ""

    @classmethod
    def load(cls, path: Path) -> "AppConfig":
        """Read the config file, returning an empty config when it does not exist."""
        if not path.exists():
            return cls()
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise ConfigError(f"failed to read config file {path}: {e}") from e

    def save(self, path: Path):
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.model_dump(), indent=2), encoding="utf-8")
            os.chmod(path, 0o600)
        except OSError as e:
            raise ConfigError(f"failed to write config file {path}: {e}") from e


def ensure_api_key(config: Settings | None = None) -> str:
    """Return the gateway API key.

    The config file wins once a key has been captured there. Otherwise the
    REKA_API_KEY environment variable is used and written to the config file
    so later sessions no longer need it.
    """
    config = config or settings
    app_config = AppConfig.load(config.config_file)
    if app_config.api_key:
        return app_config.api_key

    if config.REKA_API_KEY:
        app_config.api_key = config.REKA_API_KEY
        app_config.save(config.config_file)
        logger.info(f"Saved API key from environment to {config.config_file}")
        return app_config.api_key

    raise ConfigError(
        "no API key found. Please set REKA_API_KEY environment variable or add it to the config file"
    )
