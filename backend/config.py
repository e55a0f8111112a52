from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: list[str] = ["http://localhost:6565"]

    # MongoDB
    MONGO_URL: str = "mongodb://localhost:27017"
    DB_NAME: str = "parcel_delivery"

    # JWT
    JWT_SECRET: str = "changeme_minimum_32_chars_here_please"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Parcels
    TRACKING_ID_MAX_ATTEMPTS: int = 5   # régénérations sur collision de tracking_id

    # Rate limits (syntaxe slowapi)
    LOGIN_RATE_LIMIT:    str = "10/minute"
    TRACKING_RATE_LIMIT: str = "60/minute"

    model_config = SettingsConfigDict(
        env_file=[".env", "../.env"],
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
