from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional
import os

class Settings(BaseSettings):
    # === DATABASE ===
    DATABASE_URL: str = Field(default=os.environ.get("DATABASE_URL", "sqlite:///./afp_personnel_db.sqlite3"), description="Primary database URL (PostgreSQL in production)")
    LOCAL_FALLBACK_URL: Optional[str] = Field(default=None, description="SQLite URL used when the primary database cannot be reached")
    AUTO_CREATE_TABLES: bool = Field(default=True, description="Create missing tables on startup (use Alembic in production)")
    DB_CONNECT_MAX_ATTEMPTS: int = Field(default=3, description="Connection attempts before giving up")
    DB_CONNECT_RETRY_DELAY: float = Field(default=1.0, description="Seconds to wait between connection attempts")
    DB_CONNECT_BACKOFF: float = Field(default=1.0, description="Delay multiplier per attempt (1.0 = fixed delay)")

    # === JWT AUTH ===
    SECRET_KEY: str = Field(default=os.environ.get("SECRET_KEY", "change-this-secret-key"), description="Secret key for JWT token signing")
    ALGORITHM: str = Field(default=os.environ.get("ALGORITHM", "HS256"), description="JWT algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", 60)), description="JWT token expiration time in minutes")
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=int(os.environ.get("REFRESH_TOKEN_EXPIRE_DAYS", 7)), description="Refresh token expiration time in days")

    # === EMAIL ===
    EMAIL_HOST: str = Field(default=os.environ.get("EMAIL_HOST", ""), description="SMTP host (empty disables sending)")
    EMAIL_PORT: int = Field(default=int(os.environ.get("EMAIL_PORT", 587)), description="SMTP port")
    EMAIL_HOST_USER: str = Field(default=os.environ.get("EMAIL_HOST_USER", ""), description="SMTP username")
    EMAIL_HOST_PASSWORD: str = Field(default=os.environ.get("EMAIL_HOST_PASSWORD", ""), description="SMTP password")
    EMAIL_FROM: str = Field(default=os.environ.get("EMAIL_FROM", "noreply@afp-personnel.mil.ph"), description="Email sender address")

    # === APPLICATION ===
    BASE_URL: str = Field(default=os.environ.get("BASE_URL", "http://localhost:8000"), description="Public base URL used in links")
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000", "http://127.0.0.1:3000"], description="Allowed CORS origins")

    # === FILE STORAGE ===
    POLICY_UPLOAD_DIR: str = Field(default="uploads/policies", description="Filesystem fallback directory for policy documents")
    BLOB_CHUNK_SIZE: int = Field(default=255 * 1024, description="Chunk size for the binary object store")
    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, description="Largest accepted upload")

    # === PROMOTION SCORING ===
    PROMOTION_MIN_TRAINING_SCORE: float = Field(default=0.0, description="Lower bound applied to the training component")
    PROMOTION_MIN_TIME_SCORE: float = Field(default=0.0, description="Lower bound applied to the time-in-rank component")
    PROMOTION_DEFAULT_EPOCH: str = Field(default="2020-01-01", description="Service start date assumed when date joined is missing")

    # === DEBUG MODE ===
    DEBUG: bool = Field(default=os.environ.get("DEBUG", "False").lower() == "true", description="Debug mode")

    class Config:
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
