"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "EstagioPro"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Database
    database_url: str = "sqlite:///./data/estagiopro.db"

    # Caller identity (tokens are issued by the external auth service)
    secret_key: str
    algorithm: str = "HS256"

    # Expiration alert scan
    alert_scan_enabled: bool = True
    alert_scan_initial_delay_seconds: int = 60
    alert_scan_interval_hours: int = 24

    # Paths
    base_dir: Path = Path(__file__).parent
    institution_config_path: Path = base_dir / "configs" / "institution.yaml"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        """Fail closed if SECRET_KEY is weak or placeholder quality."""
        if not value:
            raise ValueError("SECRET_KEY must be set.")

        if len(value) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered:
            raise ValueError("SECRET_KEY must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("SECRET_KEY entropy is too low; use a cryptographically random value.")

        return value

    @field_validator("alert_scan_initial_delay_seconds")
    @classmethod
    def validate_scan_delay(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Alert scan timings must not be negative.")
        return value

    @field_validator("alert_scan_interval_hours")
    @classmethod
    def validate_scan_interval(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Alert scan timings: the interval must be at least one hour.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
