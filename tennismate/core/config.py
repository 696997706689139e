from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # PostgreSQL Configuration
    postgres_user: str = Field(default="admin")
    postgres_password: str = Field(default="admin")
    postgres_db: str = Field(default="tennismate")
    postgres_host: str = Field(default="db")
    postgres_port: int = Field(default=5432)

    # Overrides the postgres_* fields when set (e.g. sqlite+aiosqlite:///./dev.db)
    database_url_override: Optional[str] = Field(default=None)

    # Application Configuration
    app_env: str = Field(default="dev")
    log_level: str = Field(default="INFO")
    api_port: int = Field(default=8000)
    jwt_secret: str = Field(default="change-me-in-production-use-a-secure-random-string")
    access_token_expires: int = Field(default=900)  # 15 minutes
    create_tables_on_startup: bool = Field(default=False)

    # Realtime change feed: "memory" (single worker) or "redis" (fan-out across workers)
    realtime_backend: str = Field(default="memory")
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_pool_size: int = Field(default=10)
    realtime_channel_prefix: str = Field(default="tennismate:realtime")

    # Discovery
    discover_default_limit: int = Field(default=50)
    discover_max_limit: int = Field(default=100)

    # Websocket
    ws_auth_timeout_seconds: float = Field(default=10.0)
    ws_heartbeat_interval_seconds: int = Field(default=30)

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # CORS - web client (Vite) and Expo mobile client origins
    allowed_origins: List[str] = [
        origin for origin in [
            "http://localhost:5173",   # Vite dev server
            "http://localhost:19006",  # Expo web
            "http://localhost:8081",   # Expo Metro
            "exp://localhost:19000",   # Expo development
            os.getenv("FRONTEND_URL")
        ] if origin is not None
    ]

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
