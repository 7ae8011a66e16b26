"""Configuration management for frameshop.

Loads settings from a YAML configuration file with environment variable
overrides for sensitive values (API keys). Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/frameshop.yaml")


class PlaybackConfig(BaseModel):
    poll_interval: float = Field(default=0.25, gt=0, description="Embedded player poll period (s)")
    seek_step: float = Field(default=10.0, gt=0)
    player_bridge_url: str = Field(default="http://localhost:8765")
    control_script_path: str = Field(default="/iframe_api")
    bridge_timeout: float = Field(default=10.0, gt=0)
    player_ready_timeout: float = Field(default=15.0, gt=0)
    thumbnail_template: str = Field(
        default="https://img.youtube.com/vi/{video_id}/maxresdefault.jpg",
    )


class CaptureConfig(BaseModel):
    jpeg_quality: int = Field(default=80, ge=1, le=100)


class ClassifierConfig(BaseModel):
    backend: Literal["http", "vision"] = Field(default="http")
    service_url: str = Field(default="http://localhost:8080/functions/v1/scan-products")
    timeout: float = Field(default=60.0, gt=0)
    model: str = Field(default="google/gemini-2.5-flash")
    base_url: str | None = Field(default=None)
    max_tokens: int = Field(default=1024, gt=0)
    system_prompt_override: str | None = Field(default=None)
    purchase_url_template: str = Field(default="https://www.amazon.com/s?k={query}")


class LayoutConfig(BaseModel):
    seed: int | None = Field(default=None, description="Fix overlay jitter for reproducible layouts")


class LibraryConfig(BaseModel):
    backend: Literal["memory", "rest"] = Field(default="memory")
    base_url: str = Field(default="http://localhost:54321")
    timeout: float = Field(default=10.0, gt=0)


class ServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the frameshop system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "FRAMESHOP_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # API Keys
    openai_api_key: SecretStr = Field(default=SecretStr(""))
    openrouter_api_key: SecretStr = Field(default=SecretStr(""))
    service_api_key: SecretStr = Field(default=SecretStr(""))
    library_api_key: SecretStr = Field(default=SecretStr(""))

    # Configuration sections
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    library: LibraryConfig = Field(default_factory=LibraryConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def vision_api_key(self) -> str:
        """API key for the vision model; an OpenRouter key wins if set."""
        return (
            self.openrouter_api_key.get_secret_value()
            or self.openai_api_key.get_secret_value()
        )

    def vision_base_url(self) -> str | None:
        if self.classifier.base_url:
            return self.classifier.base_url
        if self.openrouter_api_key.get_secret_value():
            return "https://openrouter.ai/api/v1"
        return None


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file manually for non-prefixed vars
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    or_key = os.environ.get("OPENROUTER_API_KEY", "")
    vision_model = os.environ.get("VISION_MODEL", "")
    supabase_url = os.environ.get("SUPABASE_URL", "").rstrip("/")
    supabase_key = os.environ.get("SUPABASE_ANON_KEY", "")

    if or_key:
        yaml_data["openrouter_api_key"] = or_key

    classifier = yaml_data.setdefault("classifier", {})
    if vision_model and not classifier.get("model"):
        classifier["model"] = vision_model

    if supabase_url:
        library = yaml_data.setdefault("library", {})
        if not library.get("base_url"):
            library["base_url"] = supabase_url
            library.setdefault("backend", "rest")
        if not classifier.get("service_url"):
            classifier["service_url"] = f"{supabase_url}/functions/v1/scan-products"

    if supabase_key:
        yaml_data.setdefault("library_api_key", supabase_key)
        yaml_data.setdefault("service_api_key", supabase_key)
