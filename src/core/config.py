"""Application configuration."""

from typing import Annotated, Any, Literal, Self

from pydantic import (
    AnyUrl,
    BeforeValidator,
    HttpUrl,
    computed_field,
    model_validator,
)
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def parse_url_list(v: Any) -> list[str]:
    """允许以逗号分隔的字符串配置 URL 列表。"""
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    return v


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "channelSentry"
    SERVER_PORT: int = 8000
    ROOTPATH: str = ""
    API_V1_STR: str = "/api/v1"
    FRONTEND_HOST: str = "http://localhost:3000"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Asia/Shanghai"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []
    CORS_ALLOW_METHODS: list[str] = ["GET", "POST", "OPTIONS"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    @computed_field
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    # Sentry
    SENTRY_DSN: HttpUrl | None = None

    # PostgreSQL（源配置 + 频道健康记录）
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "channelsentry"

    @computed_field
    @property
    def database_url_object(self) -> MultiHostUrl:
        return MultiHostUrl.build(
            scheme="postgresql+psycopg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        return str(self.database_url_object)

    # Redis（播放列表缓存 / Catalog 快照 / 探测游标 / 锁）
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CLIENT_TIMEOUT_SEC: float = 5.0

    # Playlist Fetch Settings
    PLAYLIST_FETCH_TIMEOUT_SEC: float = 10.0  # 每次访问路径独立超时
    PLAYLIST_USER_AGENT: str = (
        "Mozilla/5.0 (compatible; channelSentry/1.0; +https://channelsentry.app)"
    )
    # 中继前缀，按顺序在直连失败后尝试；包含 {url} 时替换为编码后的源地址
    PLAYLIST_RELAY_URLS: Annotated[
        list[str] | str, BeforeValidator(parse_url_list)
    ] = ["https://corsproxy.io/?"]
    # 内置默认源：所有已配置源失败后按顺序尝试
    DEFAULT_PLAYLIST_URLS: Annotated[
        list[str] | str, BeforeValidator(parse_url_list)
    ] = [
        "https://sprl.in/Shailu_Indian_chanels_follow_iptvlinksp-m3u",
        "https://raw.githubusercontent.com/iptv-org/iptv/master/streams/in.m3u",
        "https://raw.githubusercontent.com/iptv-org/iptv/master/streams/us.m3u",
        "https://iptv-org.github.io/iptv/index.m3u",
    ]
    PLAYLIST_CACHE_KEY: str = "main_playlist"

    # Catalog Refresh Settings
    CATALOG_REFRESH_INTERVAL_SEC: int = 3600  # 1 hour
    CATALOG_REFRESH_LOCK_TTL_SEC: int = 300

    # Health Probe Settings
    HEALTH_PROBE_SAMPLE_SIZE: int = 10  # 每轮探测的频道数
    HEALTH_PROBE_CONCURRENCY: int | None = None  # 默认等于 sample size
    HEALTH_PROBE_TIMEOUT_SEC: float = 8.0
    HEALTH_PROBE_INTERVAL_SEC: int = 300  # 5 minutes

    @computed_field
    @property
    def health_probe_concurrency(self) -> int:
        return self.HEALTH_PROBE_CONCURRENCY or self.HEALTH_PROBE_SAMPLE_SIZE

    # Celery Settings
    CELERY_BROKER_URL: str | None = None  # 默认使用 REDIS_URL
    CELERY_RESULT_BACKEND: str | None = None  # 默认使用 REDIS_URL
    CELERY_TASK_SERIALIZER: str = "json"
    CELERY_RESULT_SERIALIZER: str = "json"
    CELERY_ACCEPT_CONTENT: list[str] = ["json"]
    CELERY_TASK_DEFAULT_RETRY_DELAY: int = 60
    CELERY_TASK_MAX_RETRIES: int = 3

    @computed_field
    @property
    def celery_broker_url(self) -> str:
        """获取 Celery Broker URL，默认使用 Redis URL。"""
        return self.CELERY_BROKER_URL or self.REDIS_URL

    @computed_field
    @property
    def celery_result_backend(self) -> str:
        """获取 Celery Result Backend URL，默认使用 Redis URL。"""
        return self.CELERY_RESULT_BACKEND or self.REDIS_URL

    @model_validator(mode="after")
    def _check_probe_settings(self) -> Self:
        if self.HEALTH_PROBE_SAMPLE_SIZE < 1:
            raise ValueError("HEALTH_PROBE_SAMPLE_SIZE must be at least 1")
        if self.HEALTH_PROBE_CONCURRENCY is not None and self.HEALTH_PROBE_CONCURRENCY < 1:
            raise ValueError("HEALTH_PROBE_CONCURRENCY must be at least 1")
        return self


settings = Settings()
