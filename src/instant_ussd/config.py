"""Configuration for the USSD gateway."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

from .reduction import validate_separator


class Settings(BaseSettings):
    """USSD gateway settings with env/CLI override support."""

    separator: str = "*"
    home_menu_id: str = "home_instant_ussd"
    error_message: str = "Sorry, something went wrong. Please try again later."
    welcome_template: str = "Welcome to {service_code}. No menus are configured yet."
    exit_message: str = "Thank you for using our service."
    menus: str | None = None  # "package.module:attribute" of a MenuRegistry
    max_menu_hops: int = 20  # skips allowed while looking for a screen
    session_ttl_seconds: float = 180.0
    max_tracked_sessions: int = 10_000
    log_root: Path = Path("./ussd_logs")
    log_exchanges: bool = True
    host: str = "0.0.0.0"
    port: int = 9000
    verbose: bool = False

    # Reserved menu ids (not configurable via env)
    exit_menu_id: str = "_exit_"
    error_menu_id: str = "_error_"

    model_config = {
        "env_prefix": "USSD_",
        "env_file": ".env",
        "extra": "ignore",
    }

    @field_validator("separator")
    @classmethod
    def _check_separator(cls, value: str) -> str:
        # A blank separator would turn every history into a single value
        validate_separator(value.strip())
        return value
