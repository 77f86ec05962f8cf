from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:3001/api"
    request_timeout: float = 10.0
    token_file: Optional[str] = None
    cache_ttl: float = 0.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="TIGERMOOD_", env_file=".env", extra="ignore")


settings = Settings()
