"""Database configuration and credentials management"""
from dataclasses import dataclass

from playlist_earnings.config import Settings, settings

# Deployment-specific database configurations
PRODUCTION_CONFIG = {
    'HOST': 'db.playlist-earnings.internal',
    'PORT': '5432',
    'NAME': 'earnings',
    'USER': 'earnings_owner',
    'SSL_MODE': 'require'
}

STAGING_CONFIG = {
    'HOST': 'db.staging.playlist-earnings.internal',
    'PORT': '5432',
    'NAME': 'earnings-staging',
    'USER': 'earnings_owner',
    'SSL_MODE': 'require'
}

LOCAL_CONFIG = {
    'HOST': 'localhost',
    'PORT': '5432',
    'NAME': 'earnings',
    'USER': 'earnings',
    'SSL_MODE': 'disable'
}

def determine_network_config(deployment: str) -> dict:
    """Determine database configuration based on the deployment name."""
    if not deployment:
        raise ValueError("DEPLOYMENT setting is required")

    if deployment == 'production':
        return PRODUCTION_CONFIG
    elif deployment == 'staging':
        return STAGING_CONFIG
    elif deployment == 'local':
        return LOCAL_CONFIG
    else:
        raise ValueError(f"Invalid DEPLOYMENT {deployment}. Must be production, staging or local")

@dataclass
class DatabaseCredentials:
    """Database credentials container with validation"""
    host: str
    port: str
    name: str
    user: str
    password: str
    ssl_mode: str = 'require'

    def to_connection_string(self) -> str:
        """Generate database connection string with proper escaping"""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/"
            f"{self.name}?sslmode={self.ssl_mode}"
        )

    @classmethod
    def from_config(cls, config: dict, password: str) -> 'DatabaseCredentials':
        """Create credentials from config and provided password"""
        return cls(
            host=config['HOST'],
            port=config['PORT'],
            name=config['NAME'],
            user=config['USER'],
            password=password,
            ssl_mode=config['SSL_MODE']
        )

class DatabaseManager:
    """Resolves the connection string for the configured deployment"""

    @staticmethod
    def get_connection_string(app_settings: Settings) -> str:
        """
        Generate database connection string from settings

        Args:
            app_settings: Loaded application settings

        Returns:
            Complete database connection string

        Raises:
            ValueError: If the deployment is unknown or the password is missing
        """
        if app_settings.DATABASE_URL:
            return app_settings.DATABASE_URL

        config = determine_network_config(app_settings.DEPLOYMENT)
        if config['SSL_MODE'] == 'require' and not app_settings.DB_PASSWORD:
            raise ValueError("DB_PASSWORD setting is required")

        credentials = DatabaseCredentials.from_config(config, app_settings.DB_PASSWORD)
        return credentials.to_connection_string()

    @classmethod
    def initialize_from_env(cls) -> str:
        """Initialize database connection string from environment variables"""
        return cls.get_connection_string(settings)
