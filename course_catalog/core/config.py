from pydantic_settings import BaseSettings, SettingsConfigDict

# Ensure env file is loaded before Settings() reads environment variables
from course_catalog.core.env import load_env
load_env()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,  # we load via course_catalog.core.env (ENV_FILE)
        extra="ignore",
        case_sensitive=True,
    )

    APP_NAME: str = "Course Catalog API"
    API_PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./course_catalog.db"

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Page size used when a list request leaves `limit` unset
    DEFAULT_PAGE_LIMIT: int = 50


settings = Settings()
