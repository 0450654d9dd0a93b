"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class AccountServiceConfig(BaseSettings):
    """Account service configuration"""
    
    # Storage configuration
    storage_backend: str = "sqlite"  # sqlite or memory
    database_path: str = "accounts.db"
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    # Business rules configuration
    max_accounts_per_user: int = 10
    min_transaction_amount: int = 10
    cancel_window_days: int = 365
    account_number_max_attempts: int = 1000
    
    # Seconds a use-balance call holds the account lock before validating
    balance_hold_seconds: float = 0.0
    
    class Config:
        env_prefix = "ACCOUNT_SERVICE_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = AccountServiceConfig()


def get_config() -> AccountServiceConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> AccountServiceConfig:
    """Reload configuration from environment"""
    global config
    config = AccountServiceConfig()
    return config
