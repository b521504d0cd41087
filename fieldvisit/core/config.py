import os
from typing import List


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Settings:
    APP_NAME: str = "Field Visit Tracker API"
    APP_VERSION: str = "1.0.0"

    # Server
    PORT: int = int(os.getenv("PORT", "4000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database Configuration
    db_user = os.getenv("DB_USER", "root")
    db_password = os.getenv("DB_PASSWORD", "")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "3306")
    db_name = os.getenv("DB_NAME", "field_visits")

    # SQLAlchemy connection string; DATABASE_URL wins when set
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"mysql+pymysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}",
    )

    # JWT Settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-super-secret-key-change-in-production")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))

    # Security
    PASSWORD_MIN_LENGTH: int = 6
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    BAN_DURATION_HOURS: int = 87600

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = _split_origins(
        os.getenv("BACKEND_CORS_ORIGINS", "http://localhost:5173")
    )

    # Request limits
    MAX_BODY_MB: int = int(os.getenv("MAX_BODY_MB", "15"))
    AUTH_RATE_LIMIT: int = int(os.getenv("AUTH_RATE_LIMIT", "10"))
    API_RATE_LIMIT: int = int(os.getenv("API_RATE_LIMIT", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # Redis Configuration (rate limit counters); empty keeps them in-process
    REDIS_URL: str = os.getenv("REDIS_URL", "")

    # AWS / S3 Configuration
    AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID", "")
    AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY", "")
    AWS_REGION: str = os.getenv("AWS_REGION", "ap-south-1")
    S3_BUCKET: str = os.getenv("S3_BUCKET", "visit-photos")
    S3_PREFIX: str = os.getenv("S3_PREFIX", "field-visits/")
    PRESIGNED_TTL_SECONDS: int = int(os.getenv("PRESIGNED_TTL_SECONDS", "300"))
    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "10"))
    CLOUDFRONT_URL: str = os.getenv("CLOUDFRONT_URL", "")

    # Reverse geocoding
    GEOCODER_URL: str = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/reverse")
    GEOCODER_USER_AGENT: str = os.getenv("GEOCODER_USER_AGENT", "field-visit-tracker/1.0")
    GEOCODER_TIMEOUT_SECONDS: int = int(os.getenv("GEOCODER_TIMEOUT_SECONDS", "10"))


settings = Settings()
