from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class TvdbSettings(BaseModel):
    base_url: str = "https://api.thetvdb.com"
    """Root of the TheTVDB v2 REST API"""
    banner_url: str = "https://www.thetvdb.com/banners/"
    """Prefix prepended to image file names returned by the API"""
    api_key: str = ""
    request_timeout: int = 30
    """Total timeout (seconds) of a single upstream request"""

    language_cache_ttl: int = 86400
    """TTL for the upstream language table (default: 24 hours)"""

    max_concurrent_image_requests: int = 3
    """Maximum concurrent image category queries per series (default: one per category)"""


class ApplicationSettings(BaseModel):
    debug: bool = False
    config_dir: str = "/config"
    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)"""
    log_format: str = "text"
    """Log format: 'text' for human-readable, 'json' for machine-readable"""
    log_file: str | None = None
    """Optional log file path (relative to config_dir/logs/). If not set, logs to stdout only"""

    default_metadata_language: str = "en"
    """Language used to rank images when the item has no preferred metadata language"""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(  # pyright: ignore[reportUnannotatedClassAttribute]
        env_prefix="MME_",
        env_nested_delimiter="__",
        nested_model_default_partial_update=True,
        env_file=(".env.local", ".env"),
        extra="ignore",
    )

    app: ApplicationSettings = ApplicationSettings()
    tvdb: TvdbSettings = TvdbSettings()
