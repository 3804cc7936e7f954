from typing import List, Union
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Project settings
    PROJECT_NAME: str = "Lick Scroll"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Short-form social backend: posts, feeds, interactions, wallet and notifications"
    API_V1_STR: str = "/api/v1"

    # Tokens
    JWT_SECRET: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 24

    # Database - prefer discrete Postgres settings; fallback to DATABASE_URL
    DATABASE_URL: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "lick_scroll"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    DATABASE_DIALECT: str = "postgresql+asyncpg"

    # Migrations
    AUTO_MIGRATE_ON_STARTUP: bool = False

    # Redis
    REDIS_URL: str = ""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_DB: int = 0

    # RabbitMQ
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    NOTIFICATION_CONSUMER_ENABLED: bool = True
    NOTIFICATION_PREFETCH: int = 10
    NOTIFICATION_CONSUMER_RETRY_SECONDS: float = 1.0
    NOTIFICATION_CONSUMER_RETRY_MAX_SECONDS: float = 30.0

    # S3 / MinIO
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    AWS_ENDPOINT: str = ""  # set for MinIO, leave empty for AWS
    S3_USE_SSL: bool = True
    S3_BUCKET_NAME: str = "lick-scroll-content"
    S3_PUBLIC_URL: str = ""  # Optional CDN/base URL; if empty, build from endpoint/region/bucket
    S3_PRESIGN_EXPIRE_SECONDS: int = 3600

    # Other services
    AUTH_SERVICE_URL: str = "http://localhost:8000"
    SERVICE_HTTP_TIMEOUT_SECONDS: float = 5.0

    # Rate limiting (fixed window)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_DEFAULT: int = 100
    RATE_LIMIT_FEED: int = 200

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)


settings = Settings()


def get_database_url() -> str:
    """Assemble the async DB URL when DATABASE_URL is not set explicitly."""
    if settings.DATABASE_URL:
        url = settings.DATABASE_URL
        # Plain postgres URLs are upgraded to the async driver
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgresql+psycopg2://"):
            url = url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
        return url

    user = quote_plus(settings.POSTGRES_USER or "")
    password = quote_plus(settings.POSTGRES_PASSWORD or "")
    if password:
        cred = f"{user}:{password}@"
    elif user:
        cred = f"{user}@"
    else:
        cred = ""
    return (
        f"{settings.DATABASE_DIALECT}://{cred}"
        f"{settings.POSTGRES_HOST}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}"
    )


def get_redis_url() -> str:
    if settings.REDIS_URL:
        return settings.REDIS_URL
    auth = f":{quote_plus(settings.REDIS_PASSWORD)}@" if settings.REDIS_PASSWORD else ""
    return f"redis://{auth}{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"


def get_rabbitmq_url() -> str:
    user = quote_plus(settings.RABBITMQ_USER)
    password = quote_plus(settings.RABBITMQ_PASSWORD)
    vhost = quote_plus(settings.RABBITMQ_VHOST, safe="")
    return f"amqp://{user}:{password}@{settings.RABBITMQ_HOST}:{settings.RABBITMQ_PORT}/{vhost}"
