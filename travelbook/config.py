"""
Configuration management for the Travelbook admin platform.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Admin frontend origins allowed by CORS
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if origin.strip()
    ]

    # Access gate routing
    ACCESS_GATE_PROTECTED_PREFIX = '/admin/dashboard'
    ACCESS_GATE_DASHBOARD_PATH = '/admin/dashboard'
    ACCESS_GATE_LOGIN_PATH = '/admin/login'
    ACCESS_GATE_COOKIE_NAME = os.getenv('ACCESS_GATE_COOKIE_NAME', 'authToken')

    # Rewards program
    # Tier threshold ordering (silver < gold < platinum) is off until product sign-off
    REWARDS_ENFORCE_TIER_ORDER = _env_flag('REWARDS_ENFORCE_TIER_ORDER')
    REWARDS_CACHE_TIMEOUT = int(os.getenv('REWARDS_CACHE_TIMEOUT', '300'))


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        'sqlite:///travelbook_dev.db'  # SQLite fallback for local dev
    )


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False

    _db_url = os.getenv('DATABASE_URL', '')
    if _db_url.startswith('postgres://'):
        # SQLAlchemy requires postgresql:// not postgres://
        _db_url = _db_url.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = _db_url

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 5,
        'pool_recycle': 300,
        'pool_pre_ping': True,  # Verify connections before using
    }

    # Must be set via environment
    _secret_key = os.getenv('SECRET_KEY', '')

    @classmethod
    def validate_secret_key(cls) -> str:
        """
        Validate SECRET_KEY in production environment.

        Raises:
            ConfigurationError: If SECRET_KEY is missing, too short, or looks like a placeholder
        """
        from .utils.exceptions import ConfigurationError

        if not cls._secret_key:
            raise ConfigurationError(
                "SECRET_KEY environment variable is not set. "
                "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )

        insecure_patterns = ['dev', 'change', 'default', 'test', 'secret', 'password']
        lower_key = cls._secret_key.lower()
        for pattern in insecure_patterns:
            if pattern in lower_key:
                raise ConfigurationError(
                    f"SECRET_KEY contains '{pattern}' which suggests it's not secure"
                )

        if len(cls._secret_key) < 32:
            raise ConfigurationError("SECRET_KEY is too short (minimum 32 characters required)")

        return cls._secret_key

    SECRET_KEY = _secret_key  # Validated at app startup


class TestingConfig(BaseConfig):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    CACHE_TYPE = 'NullCache'
    REWARDS_ENFORCE_TIER_ORDER = False


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = 'development'):
    """Get configuration class by name."""
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """
    Validate configuration before app startup.

    In production, this ensures SECRET_KEY is properly configured.

    Raises:
        ConfigurationError: If validation fails in production
    """
    if config_name == 'production':
        ProductionConfig.validate_secret_key()
