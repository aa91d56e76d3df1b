from functools import lru_cache
from typing import Any, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Connection defaults from INFLUX_* env vars (or .env)."""

    scheme: str = "http"
    host: str = "localhost"
    port: int = 8086
    sub_path: str = ""
    username: str = "root"
    password: str = "root"
    database: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="INFLUX_", env_file=".env", extra="ignore")

    def to_config(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


@lru_cache()
def get_settings() -> ClientSettings:
    return ClientSettings()
