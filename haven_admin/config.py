import os
import logging
from pydantic_settings import BaseSettings
from typing import Optional

logger = logging.getLogger(__name__)

DEV_FALLBACK_SECRET = "haven-dev-secret-key-for-testing"


class Settings(BaseSettings):
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")

    # Identity / sessions
    SESSION_SECRET: Optional[str] = os.getenv("SESSION_SECRET")
    SESSION_TTL_MINUTES: int = int(os.getenv("SESSION_TTL_MINUTES", str(60 * 24 * 7)))
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "haven_session")

    # Object storage
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID: Optional[str] = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: Optional[str] = os.getenv("AWS_SECRET_ACCESS_KEY")
    AWS_S3_BUCKET_NAME: Optional[str] = os.getenv("AWS_S3_BUCKET_NAME")
    STORAGE_PUBLIC_BASE_URL: Optional[str] = os.getenv("STORAGE_PUBLIC_BASE_URL")
    LOCAL_STORAGE_DIR: str = os.getenv("LOCAL_STORAGE_DIR", "tmp/storage")
    AVATAR_BUCKET: str = os.getenv("AVATAR_BUCKET", "avatars")

    # Content tree
    CONTENT_ORDER_POLICY: str = os.getenv("CONTENT_ORDER_POLICY", "append_count")

    CORS_ORIGINS: list = ["http://localhost:3000", "http://127.0.0.1:3000"]

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    def validate_database_url(self):
        if not self.DATABASE_URL:
            raise ValueError(
                "DATABASE_URL environment variable is required for database operations. "
                "Please set it to your PostgreSQL connection string."
            )

    def get_session_secret(self) -> str:
        if self.SESSION_SECRET:
            return self.SESSION_SECRET
        if self.ENVIRONMENT == "production":
            raise ValueError("SESSION_SECRET is required in production")
        logger.warning("SESSION_SECRET not set, using development fallback secret")
        return DEV_FALLBACK_SECRET

    def has_s3_credentials(self) -> bool:
        return all([self.AWS_ACCESS_KEY_ID, self.AWS_SECRET_ACCESS_KEY, self.AWS_S3_BUCKET_NAME])

    class Config:
        env_file = ".env"


settings = Settings()
