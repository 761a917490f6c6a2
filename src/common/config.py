import os
from typing import List
from dotenv import load_dotenv
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

# Load environment variables from the correct .env file
env_file = ".env" if os.getenv("APP_ENV", "development") == "development" else ".env.production"
load_dotenv(env_file)  # Load the .env file

DEFAULT_JWT_SECRET = "change-me"

class Settings(BaseSettings):
    APP_ENV: str = "development"
    DEBUG: bool = True
    DATABASE_URL: str = "sqlite+aiosqlite:///./discussions.db"
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60
    ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "info"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "60/minute"

    # Support comma-separated ALLOWED_ORIGINS strings
    @field_validator("ALLOWED_ORIGINS", mode="before")
    def split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @model_validator(mode="after")
    def validate_production_secrets(self):
        """Ensure critical secrets are set when running in production."""
        if self.APP_ENV == "production":
            missing = []
            if not self.JWT_SECRET or self.JWT_SECRET == DEFAULT_JWT_SECRET:
                missing.append("JWT_SECRET")
            if self.DATABASE_URL.startswith("sqlite"):
                missing.append("DATABASE_URL")
            if missing:
                raise ValueError(
                    f"Missing required secrets for production: {', '.join(missing)}"
                )
        return self

settings = Settings()
