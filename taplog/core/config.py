from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str

    # Auth (token verification only, tokens are issued elsewhere)
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Rate limiting: empty REDIS_URL keeps counters in-process
    REDIS_URL: str = ""
    RATE_LIMIT_MAX: int = 30
    RATE_LIMIT_WINDOW_SECONDS: int = 3600

    # Rating inference
    AI_PROVIDER: str = "gemini"
    GEMINI_API_KEY: str = ""
    AI_MODEL_PRIMARY: str = "gemini-2.0-flash"
    AI_MODEL_FALLBACK: str = "gemini-2.5-flash"
    AI_TEMPERATURE: float = 0.2
    AI_MAX_OUTPUT_TOKENS: int = 300
    AI_TIMEOUT_SECONDS: float = 12.0
    OLLAMA_URL: str = "http://localhost:11434"

    # Venue summaries
    SUMMARY_TTL_DAYS: int = 7
    SUMMARY_MAX_CHECKINS: int = 50


settings = Settings()
