from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator

class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env", extra="ignore")

    ENV: str = "development"

    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ADMIN_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    CSRF_TOKEN_TTL_SECONDS: int = 15 * 60
    CSRF_SWEEP_INTERVAL_SECONDS: int = 5 * 60
    OTP_EXPIRE_MINUTES: int = 10
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    @field_validator('SECRET_KEY')
    @classmethod
    def validate_secret_key(cls, value):
        """Signing secret must be at least 32 characters."""
        if len(value) < 32:
            raise ValueError('SECRET_KEY must be at least 32 characters long')
        return value


settings = Settings()
