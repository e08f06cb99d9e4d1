"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings


class LendingConfig(BaseSettings):
    """Lending core engine configuration"""

    # Locale configuration
    timezone: str = "America/Lima"
    currency_code: str = "PEN"
    currency_symbol: str = "S/"
    date_format: str = "%d/%m/%Y"

    # Precision configuration
    decimal_precision: int = 28  # Significant digits for intermediate math
    money_decimal_places: int = 2
    percent_decimal_places: int = 4

    # Business rules configuration
    severe_delay_days: int = 7  # More days late than this is SEVERELY_LATE
    excluded_weekday: int = 6  # date.weekday() numbering, 6 = Sunday

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    class Config:
        env_prefix = "LENDING_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LendingConfig()


def get_config() -> LendingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LendingConfig:
    """Reload configuration from environment"""
    global config
    config = LendingConfig()
    return config
