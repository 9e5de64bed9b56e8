from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Course Hub"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 2  # 2 days

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./course_hub.db"
    TEST_DATABASE_URL: Optional[str] = None

    # Cache
    REDIS_URL: Optional[str] = None
    CACHE_ENABLED: bool = True
    CACHE_TTL: int = 300

    # Email
    SENDGRID_API_KEY: str = ""
    EMAILS_FROM_EMAIL: str = "no-reply@coursehub.local"
    EMAILS_FROM_NAME: str = "Course Hub"

    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_CURRENCY: str = "usd"

    NOTIFICATION_RETENTION_DAYS: int = 30
    CONTENT_WRITE_RETRIES: int = 3
    CACHE_INVALIDATION_ATTEMPTS: int = 3

    class Config:
        env_file = ".env"

settings = Settings()
