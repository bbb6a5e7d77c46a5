"""Configuration models."""

from .config import (
    ApiConfig,
    AuthConfig,
    Config,
    LoggingConfig,
    MigrationConfig,
    StorageConfig,
)

__all__ = [
    'ApiConfig',
    'AuthConfig',
    'Config',
    'LoggingConfig',
    'MigrationConfig',
    'StorageConfig',
]
