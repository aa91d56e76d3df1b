from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class PoolRuntimeSettings(BaseSettings):
    """Defaults for worker pools, overridable via INFLUX_POOL_* env vars."""

    size: int = 4
    capacity: int = 1000
    batch_size: int = 100
    flush_interval: float = 0.5
    stop_timeout: Optional[float] = 10.0

    model_config = SettingsConfigDict(env_prefix="INFLUX_POOL_", env_file=".env", extra="ignore")


@lru_cache()
def get_pool_settings() -> PoolRuntimeSettings:
    return PoolRuntimeSettings()
