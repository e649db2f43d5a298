"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class NodeSettings(BaseSettings):
    """Hive JSON-RPC node selection settings."""

    model_config = SettingsConfigDict(env_prefix="HIVE_")

    default_node: str = "https://api.hive.blog"
    beacon_url: str = "https://beacon.peakd.com/api/nodes"
    request_timeout: float = 15.0


class HafSettings(BaseSettings):
    """HAF block explorer (HAFBE) and HAF-SQL REST endpoints."""

    model_config = SettingsConfigDict(env_prefix="HAF_")

    hafbe_url: str = "https://api.syncad.com/hafbe-api"
    hafsql_url: str = "https://hafsql-api.mahdiyari.info"
    voters_page_size: int = 100
    voters_max_pages: int = 100  # hard stop for runaway pagination


class CacheSettings(BaseSettings):
    """TTLs for the in-memory caches.

    A TTL of None keeps the value for the lifetime of the process.
    """

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    node_ttl_seconds: float | None = 600.0
    ratio_ttl_seconds: float | None = None  # stale ratio accepted for the process lifetime


class FetchSettings(BaseSettings):
    """Batching and politeness limits for fan-out fetches against public nodes."""

    model_config = SettingsConfigDict(env_prefix="FETCH_")

    batch_size: int = 50  # accounts per condenser_api.get_accounts call
    batch_delay: float = 0.1  # seconds between batch starts
    max_concurrency: int = 4
    witness_list_limit: int = 1000
    proxy_chain_max_depth: int = 8


class ScheduleSettings(BaseSettings):
    """Block production schedule display settings."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULE_")

    upcoming_count: int = 20


class DashboardSettings(BaseSettings):
    """Dashboard server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    node: NodeSettings = NodeSettings()
    haf: HafSettings = HafSettings()
    cache: CacheSettings = CacheSettings()
    fetch: FetchSettings = FetchSettings()
    schedule: ScheduleSettings = ScheduleSettings()
    dashboard: DashboardSettings = DashboardSettings()
