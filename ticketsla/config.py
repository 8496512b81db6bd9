"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import List

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkingHours


class WorkingHoursConfig(BaseModel):
    """Daily working window."""
    start_hour: int = 8
    end_hour: int = 20

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "WorkingHoursConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def get_start_time(self) -> time:
        """Get start time as time object."""
        return time(hour=self.start_hour, minute=0)

    def get_end_time(self) -> time:
        """Get end time as time object."""
        return time(hour=self.end_hour, minute=0)


class ApiConfig(BaseModel):
    """Dashboard API used with ``--remote``."""
    base_url: str
    service_id: str = "manual-tickets"
    timeout: int = 30

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got '{value}'")
        return value.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeout must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    working_hours: WorkingHoursConfig = Field(default_factory=WorkingHoursConfig)
    timezone: str = "Europe/Rome"
    exclude_days: List[int] = Field(default_factory=lambda: [5, 6])  # Saturday, Sunday
    data_file: Path = Path("tickets.json")
    api: ApiConfig | None = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the business timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: '{value}'") from exc
        return value

    @field_validator("exclude_days")
    @classmethod
    def validate_exclude_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range, deduplicated and leave a working day."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"exclude_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        if len(deduped) == 7:
            raise ValueError("exclude_days must leave at least one working day")
        return deduped

    def build_working_hours(self) -> WorkingHours:
        """Build the domain calendar from this configuration."""
        return WorkingHours(
            start_time=self.working_hours.get_start_time(),
            end_time=self.working_hours.get_end_time(),
            exclude_weekdays=list(self.exclude_days),
            timezone=self.timezone
        )

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
