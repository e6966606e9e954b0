"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.intervals import DEFAULT_TIMEZONE, clock_to_minutes
from .domain.models import Service, ShopConfig, default_services

ADMIN_PIN_ENV = "CHAIRBOOK_ADMIN_PIN"


class ShopSettings(BaseModel):
    """Opening hours and slot layout of the shop."""
    name: str = "Neighbourhood Barbershop"
    slot_minutes: int = 15
    active_weekdays: List[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4, 5])  # Monday-Saturday
    opening: str = "09:00"
    closing: str = "19:00"

    @field_validator("slot_minutes")
    @classmethod
    def validate_slot_minutes(cls, value: int) -> int:
        """Ensure the slot size is positive."""
        if value <= 0:
            raise ValueError("slot_minutes must be greater than zero")
        return value

    @field_validator("opening", "closing")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        """Validate HH:MM times."""
        clock_to_minutes(value)
        return value

    @field_validator("active_weekdays")
    @classmethod
    def validate_active_weekdays(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"active_weekdays must be between 0 and 6, got {invalid_days}")
        return sorted(set(value))

    @model_validator(mode="after")
    def validate_hours_order(self) -> "ShopSettings":
        """Ensure the shop opens before it closes."""
        if clock_to_minutes(self.closing) <= clock_to_minutes(self.opening):
            raise ValueError("closing must be later than opening")
        return self

    def to_shop_config(self, timezone: str) -> ShopConfig:
        return ShopConfig(
            shop_name=self.name,
            slot_minutes=self.slot_minutes,
            active_weekdays=frozenset(self.active_weekdays),
            opening=clock_to_minutes(self.opening),
            closing=clock_to_minutes(self.closing),
            timezone=timezone,
        )


class ServiceSettings(BaseModel):
    """Catalogue entry used to seed a new store."""
    name: str
    duration_minutes: int = Field(gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)

    def to_service(self) -> Service:
        return Service.seed(self.name, self.duration_minutes, self.price)


class StoreSettings(BaseModel):
    """Where bookings are kept."""
    backend: Literal["local", "remote"] = "local"
    path: Path = Path("bookings.json")
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: float = Field(default=10, gt=0)

    @model_validator(mode="after")
    def validate_remote(self) -> "StoreSettings":
        """A remote store needs a URL."""
        if self.backend == "remote" and not self.base_url:
            raise ValueError("store.base_url is required when store.backend is 'remote'")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = DEFAULT_TIMEZONE
    admin_pin: Optional[str] = None
    shop: ShopSettings = Field(default_factory=ShopSettings)
    services: List[ServiceSettings] = Field(default_factory=list)
    store: StoreSettings = Field(default_factory=StoreSettings)

    @field_validator("admin_pin", mode="before")
    @classmethod
    def validate_admin_pin(cls, value):
        """PINs are digits only; YAML may hand them over as integers."""
        if value is None:
            return None
        value = str(value).strip()
        if not value:
            return None
        if not value.isdigit():
            raise ValueError("admin_pin must contain digits only")
        return value

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceSettings]) -> List[ServiceSettings]:
        """Ensure service names are unique."""
        seen: set[str] = set()
        for service in value:
            key = service.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate service name detected: {service.name}")
            seen.add(key)
        return value

    def shop_config(self) -> ShopConfig:
        return self.shop.to_shop_config(self.timezone)

    def seed_services(self) -> List[Service]:
        """Services a fresh store starts with; the built-in catalogue if none are configured."""
        if not self.services:
            return default_services()
        return [service.to_service() for service in self.services]

    def effective_admin_pin(self) -> Optional[str]:
        """The admin PIN, preferring the environment over the file."""
        return os.environ.get(ADMIN_PIN_ENV) or self.admin_pin

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

        config = cls(**data)

        # Relative store paths are resolved against the config file location
        if not config.store.path.is_absolute():
            config.store.path = config_path.parent / config.store.path

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of chairbook/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
