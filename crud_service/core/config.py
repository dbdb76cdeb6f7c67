from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "crud-resource-service"

    DATABASE_URL: str = "sqlite+pysqlite:///./crud_service.db"
    DATABASE_ECHO: bool = False

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"
    LOG_LEVEL: str = "INFO"

    # Listing defaults mirror the paginator the frontend was written against.
    DEFAULT_PER_PAGE: int = 15
    MAX_PER_PAGE: int = 500

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
