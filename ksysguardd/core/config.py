from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KSYSGUARDD_", env_file=".env", extra="ignore")

    # Protocol identity (banner + prompt)
    daemon_name: str = "ksysguardd"
    version: str = "1.2.0"

    # Powercap sources
    powercap_dir: str = "/sys/class/powercap"
    refresh_seconds: float = Field(default=1.0, gt=0)

    # Logging; stdout carries the protocol, so the console handler writes to stderr
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 2_000_000
    log_backup_count: int = 5


settings = Settings()
