from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    SERVICE_NAME: str = "orderdesk"
    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Full SQLAlchemy URL wins over the POSTGRES_* parts when set
    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "orderdesk"
    POSTGRES_USER: str = "orderdesk"
    POSTGRES_PASSWORD: str = "orderdesk"
    RUN_MIGRATIONS: bool = True

    # Pull-sync window
    SYNC_PAGE_SIZE: int = 20
    SYNC_MIN_CREATED: str = "2025-12-20T00:00:00"
    HTTP_TIMEOUT: float = 15.0
    ETSY_API_BASE: str = "https://openapi.etsy.com/v3/application"

    PLACEHOLDER_IMAGE: str = "https://placehold.co/600x400?text=Görsel+Yok"
    ETSY_PLACEHOLDER_IMAGE: str = "https://placehold.co/600x400?text=Etsy+Görsel"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

@lru_cache
def get_settings() -> Settings:
    return Settings()
