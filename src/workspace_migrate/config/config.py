"""Configuration management for the workspace migration tool."""

from typing import Optional, Dict, Any
from pathlib import Path
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator
import yaml
from dotenv import load_dotenv


class ApiConfig(BaseModel):
    """Configuration for the remote resource API."""

    base_url: str = Field(
        default='http://localhost:3000/api/v1', description='API base URL'
    )
    timeout: int = Field(default=60, description='Request timeout in seconds')
    update_timeout: int = Field(
        default=30, description='Timeout for project update requests in seconds'
    )

    @field_validator('base_url')
    @classmethod
    def validate_url(cls, v):
        """Validate API URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('timeout', 'update_timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate timeouts are positive."""
        if v <= 0:
            raise ValueError('Timeout must be positive')
        return v


class AuthConfig(BaseModel):
    """Firebase credentials used to mint per-identity tokens."""

    credentials_file: Optional[str] = Field(
        default=None, description='Path to a service account JSON file'
    )
    credentials_json: Optional[str] = Field(
        default=None, description='Inline service account JSON'
    )
    api_key: Optional[str] = Field(
        default=None, description='Web API key for the token exchange'
    )
    exchange_url: str = Field(
        default=(
            'https://identitytoolkit.googleapis.com/v1/'
            'accounts:signInWithCustomToken'
        ),
        description='Custom token exchange endpoint',
    )
    timeout: int = Field(default=30, description='Exchange timeout in seconds')

    def has_credentials(self) -> bool:
        return bool(self.credentials_file or self.credentials_json)


class StorageConfig(BaseModel):
    """Object storage (S3) configuration."""

    bucket: Optional[str] = Field(default=None, description='S3 bucket name')
    region: Optional[str] = Field(default=None, description='AWS region')
    access_key_id: Optional[str] = Field(default=None, description='AWS access key')
    secret_access_key: Optional[str] = Field(
        default=None, description='AWS secret key'
    )
    legacy_root: str = Field(default='', description='Key prefix of the legacy layout')
    new_root: Optional[str] = Field(
        default=None, description='Key prefix of the new layout (defaults to legacy_root)'
    )

    @field_validator('legacy_root', 'new_root')
    @classmethod
    def strip_slashes(cls, v):
        return v.strip('/') if v is not None else v

    @property
    def target_root(self) -> str:
        return self.legacy_root if self.new_root is None else self.new_root


class MigrationConfig(BaseModel):
    """Migration-specific configuration."""

    migrate_ownership: bool = Field(
        default=True, description='Re-parent projects into workspaces'
    )
    relocate_artifacts: bool = Field(
        default=True, description='Relocate branch and version artifacts'
    )

    identity_limit: Optional[int] = Field(
        default=10,
        description='Process only the first N identities (staged rollout); null for all',
    )
    page_size: int = Field(default=1000, description='Identity listing page size')
    pacing_delay: float = Field(
        default=0.2, description='Seconds to wait between project updates'
    )
    default_workspace_name: str = Field(
        default='Personal', description='Workspace name when an identity has no name'
    )

    dry_run: bool = Field(default=False, description='Perform dry run without changes')

    @field_validator('identity_limit')
    @classmethod
    def validate_identity_limit(cls, v):
        """Validate identity limit is positive when set."""
        if v is not None and v <= 0:
            raise ValueError('Identity limit must be positive')
        return v

    @field_validator('page_size')
    @classmethod
    def validate_page_size(cls, v):
        if not 0 < v <= 1000:
            raise ValueError('Page size must be between 1 and 1000')
        return v

    @field_validator('pacing_delay')
    @classmethod
    def validate_pacing_delay(cls, v):
        if v < 0:
            raise ValueError('Pacing delay cannot be negative')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


TEMPLATE = {
    'api': {
        'base_url': 'http://localhost:3000/api/v1',
        'timeout': 60,
        'update_timeout': 30,
    },
    'auth': {
        'credentials_file': '/path/to/service-account.json',
        'api_key': 'your-firebase-web-api-key',
    },
    'storage': {
        'bucket': 'your-bucket',
        'region': 'us-east-1',
        'legacy_root': 'public',
        'new_root': 'public',
    },
    'migration': {
        'migrate_ownership': True,
        'relocate_artifacts': True,
        'identity_limit': 10,
        'page_size': 1000,
        'pacing_delay': 0.2,
        'default_workspace_name': 'Personal',
        'dry_run': False,
    },
    'logging': {
        'level': 'INFO',
        'file': 'migration.log',
    },
}


class Config(BaseModel):
    """Main configuration class for the workspace migration tool."""

    model_config = ConfigDict(extra='forbid')

    api: ApiConfig = Field(default_factory=ApiConfig, description='Resource API')
    auth: AuthConfig = Field(default_factory=AuthConfig, description='Firebase auth')
    storage: StorageConfig = Field(
        default_factory=StorageConfig, description='Object storage'
    )
    migration: MigrationConfig = Field(
        default_factory=MigrationConfig, description='Migration settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        load_dotenv()

        limit = os.getenv('MIGRATION_IDENTITY_LIMIT')
        config_data = {
            'api': {
                'base_url': os.getenv('API_BASE_URL'),
            },
            'auth': {
                'credentials_file': os.getenv('CREDENTIALS_FILE'),
                'credentials_json': os.getenv('CREDENTIALS'),
                'api_key': os.getenv('API_KEY'),
            },
            'storage': {
                'bucket': os.getenv('AWS_S3_BUCKET'),
                'region': os.getenv('AWS_REGION'),
                'access_key_id': os.getenv('AWS_ACCESS_KEY_ID'),
                'secret_access_key': os.getenv('AWS_SECRET_ACCESS_KEY'),
                'legacy_root': os.getenv('BLOB_LEGACY_ROOT'),
                'new_root': os.getenv('BLOB_NEW_ROOT'),
            },
            'migration': {
                'identity_limit': (
                    None if limit in (None, '', '0', 'all') else int(limit)
                ),
                'page_size': int(os.getenv('MIGRATION_PAGE_SIZE', 1000)),
                'pacing_delay': float(os.getenv('MIGRATION_PACING_DELAY', 0.2)),
                'dry_run': os.getenv('MIGRATION_DRY_RUN', 'false').lower() == 'true',
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        config_data = cls._remove_none_values(config_data)
        # An explicit "all" must survive the None filter.
        if limit is not None:
            config_data['migration'].setdefault('identity_limit', None)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.model_dump(), f, default_flow_style=False, indent=2, sort_keys=False
            )

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(TEMPLATE, f, default_flow_style=False, indent=2, sort_keys=False)
