from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "SplitTrack"

    # Remote assignment service
    TEST_TRACK_API_URL: str = "http://localhost:3000"
    TEST_TRACK_TIMEOUT_SECONDS: float = 2.0
    SPLIT_REGISTRY_TTL_SECONDS: int = 60

    # Visitor cookie
    COOKIE_NAME: str = "tt_visitor_id"
    COOKIE_DOMAIN: str | None = None
    COOKIE_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 365  # 1 year

    # Analytics
    ANALYTICS_URL: str = "https://api.mixpanel.com/track"
    ANALYTICS_TOKEN: str = ""

    # Deferred jobs
    DATABASE_URL: str = "sqlite:///./splittrack.db"
    JOB_MAX_ATTEMPTS: int = 25
    JOB_RETRY_BASE_SECONDS: int = 5

    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
