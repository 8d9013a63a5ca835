from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./cas_tracker.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    SECRET_KEY: str = "dev-secret-cas"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12
    LOG_LEVEL: str = "INFO"

    CACHE_ENABLED: bool = True
    CACHE_TTL: int = 300  # 5 minutes

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    ALLOWED_EMAIL_DOMAIN: str = "fountainheadschools.org"
    ADMIN_EMAIL: str = "admin@fountainheadschools.org"
    ADMIN_PASSWORD: str | None = None
    ADMIN_RECOVERY_EMAIL: str = "cas.recovery@fountainheadschools.org"
    OTP_TTL_MINUTES: int = 10

    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_START_TLS: bool = True
    EMAIL_FROM: str = "no-reply@fountainheadschools.org"
    NOTIFICATION_MAX_ATTEMPTS: int = 5
    NOTIFICATION_POLL_SECONDS: int = 60

    UPLOAD_DIR: str = "./uploads"
    MAX_EVIDENCE_BYTES: int = 50 * 1024 * 1024
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
