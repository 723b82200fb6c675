"""App configuration.

"""

# pyright: reportMissingImports=false
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    user_agent: str = "pagediff/0.1 (+mailto:you@example.com)"
    request_timeout: int = 15
    max_response_mb: int = 5
    obey_robots: bool = False
    db_path: str = "data/pagediff.sqlite3"

    # Diff engine
    detect_attribute_changes: bool = True
    max_tokens: int = 5000  # per document; guards the n*m table

    # Pending comparisons handed from /compare to /view
    pending_ttl_minutes: int = 30
    retention_enabled: bool = True
    retention_interval_hours: int = 1  # how often to run purge
    vacuum_after_purge: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="APP__",
        env_file=".env",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    return Settings()
