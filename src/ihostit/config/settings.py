import os

DEFAULT_SOURCE_URL = (
    "https://raw.githubusercontent.com/awesome-selfhosted/awesome-selfhosted/master/README.md"
)


class Config:
    database_url = os.getenv("IHOSTIT_DATABASE_URL", "sqlite:///ihostit.db")

    # Upstream source
    source_url = os.getenv("IHOSTIT_SOURCE_URL", DEFAULT_SOURCE_URL)
    source_cache_hours = float(os.getenv("IHOSTIT_SOURCE_CACHE_HOURS", "24"))
    http_timeout_seconds = int(os.getenv("IHOSTIT_HTTP_TIMEOUT_SECONDS", "15"))

    # Sync scheduling
    sync_max_age_hours = float(os.getenv("IHOSTIT_SYNC_MAX_AGE_HOURS", "24"))
    sync_check_interval_minutes = float(
        os.getenv("IHOSTIT_SYNC_CHECK_INTERVAL_MINUTES", "60")
    )
    scheduler_enabled = os.getenv("IHOSTIT_SCHEDULER_ENABLED", "true").lower() == "true"

    # API
    cors_origins = [
        origin.strip()
        for origin in os.getenv("IHOSTIT_CORS_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ]

    log_level = os.getenv("IHOSTIT_LOG_LEVEL", "INFO").upper()

config = Config()
