from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    jwt_secret: str = "dev"
    jwt_alg: str = "HS256"
    access_ttl_min: int = 30
    refresh_ttl_days: int = 14
    api_prefix: str = "/api"
    admin_email: str = "admin@tigermood.com"
    admin_password: str = "admin123"
    seed_demo: bool = True
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="TIGERMOOD_BACKEND_", env_file=".env", extra="ignore")

settings = Settings()
