"""
Application configuration module.
Loads environment variables and provides application-wide settings.
"""
import os
from pathlib import Path

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# Get project root (one level up from the package)
PROJECT_ROOT = Path(__file__).parent.parent

# Global flag to indicate test mode (set via set_test_mode() or BROKERBOOK_TEST_MODE env var)
_test_mode = os.environ.get("BROKERBOOK_TEST_MODE", "").lower() in ("1", "true", "yes")


def set_test_mode(enabled: bool = True):
    """
    Enable/disable test mode globally.
    When enabled, file logging is always disabled.

    Args:
        enabled: True to enable test mode, False to disable
    """
    global _test_mode
    _test_mode = enabled
    os.environ["BROKERBOOK_TEST_MODE"] = "1" if enabled else "0"


def is_test_mode() -> bool:
    """Check if test mode is enabled."""
    return _test_mode


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env file.
    (Note: Environment variables take precedence over .env file)
    """
    PROJECT_NAME: str = "brokerbook"
    VERSION: str = "0.1.0"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE_ENABLED: bool = False
    LOG_DIR: str = str(PROJECT_ROOT / "logs")

    # Statement parsing
    STATEMENT_TIMEZONE: str = "Europe/Moscow"  # Zone of naive timestamps in statements
    DEFAULT_NUMBER_LOCALE: str = "ru_RU"  # Babel locale for numeric cells
    PARSER_MAX_WORKERS: int = 4  # Thread pool size for batch parsing

    model_config = ConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        case_sensitive=True,
        env_file_encoding='utf-8',
        extra='ignore'
        )


def get_settings() -> Settings:
    """
    Get settings instance.

    In test mode, LOG_FILE_ENABLED is forced off.

    Returns:
        Settings: Application settings
    """
    settings = Settings()

    if is_test_mode():
        settings.LOG_FILE_ENABLED = False

    return settings
