import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment"""
    app_env: str
    database_url: str | None
    secret_key: str
    access_token_expire_minutes: int
    slug_probe_limit: int
    default_reading_time_minutes: int
    log_level: str


@lru_cache()
def get_settings() -> Settings:
    """获取配置"""
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        database_url=os.getenv("DATABASE_URL"),
        secret_key=os.getenv("SECRET_KEY", "your-secret-key"),  # don't use the default in production
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")),
        slug_probe_limit=int(os.getenv("SLUG_PROBE_LIMIT", "1000")),
        default_reading_time_minutes=int(os.getenv("DEFAULT_READING_TIME_MINUTES", "5")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
