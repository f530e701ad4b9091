import sys

from loguru import logger
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_LANGUAGE = "en-US"
DEFAULT_DB_PATH = "data/library.db"
DEFAULT_MODEL = "gpt-4.1-mini"

SECRET_KEYS = ("TMDB_API_KEY", "OPENAI_API_KEY", "TMDB_LANGUAGE", "LIBRARY_DB_PATH", "LOG_LEVEL", "OPENAI_MODEL")


class ConfigurationError(RuntimeError):
    pass


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True)

    tmdb_api_key: str
    openai_api_key: str | None = None
    tmdb_language: str = DEFAULT_LANGUAGE
    library_db_path: str = DEFAULT_DB_PATH
    log_level: str = "INFO"
    openai_model: str = DEFAULT_MODEL

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def _blank_is_missing(cls, value):
        return value or None

    @field_validator("tmdb_api_key")
    @classmethod
    def _key_required(cls, value):
        if not value.strip():
            raise ValueError("TMDB_API_KEY is empty")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value):
        return value.upper()


def secret_values(secrets):
    """Pull known keys out of a secrets mapping as Settings field names.

    ``st.secrets`` raises a ``FileNotFoundError`` subclass on first access when
    no secrets.toml exists; that counts as an empty mapping.
    """
    if secrets is None:
        return {}
    try:
        return {key.lower(): secrets[key] for key in SECRET_KEYS if key in secrets and secrets[key]}
    except FileNotFoundError:
        logger.debug("[Config] No secrets file, reading the environment only")
        return {}


def load_settings(secrets=None):
    """Build Settings with secrets taking priority over the environment and .env.

    A missing TMDB key is fatal.
    """
    try:
        return Settings(**secret_values(secrets))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc.errors()[0]['msg']}") from exc


def configure_logging(level="INFO"):
    logger.remove()
    logger.add(sys.stderr, level=level)
