from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://vow:vow@db:5432/vow"
    APP_ENV: str = "development"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://vow.app,https://api.vow.app"
    CORS_ORIGINS: str = "*"

    # Logging: "json" for production, "console" for local development.
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    SERVICE_NAME: str = "vow-api"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
