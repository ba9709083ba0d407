from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "GrantGuardian"
    LOG_LEVEL: str = "INFO"

    # Backend: "memory" for local development, "supabase" for the hosted service
    BACKEND: str = "memory"
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Session cookies
    ACCESS_COOKIE: str = "gg_access_token"
    REFRESH_COOKIE: str = "gg_refresh_token"
    COOKIE_SECURE: bool = False

    MIN_PASSWORD_LENGTH: int = 6
    INVITE_CODE_LENGTH: int = 8
    PASSWORD_RESET_REDIRECT_PATH: str = "/update-password"

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
