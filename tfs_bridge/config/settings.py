"""Configuration settings for the TFS bridge"""
import os
from typing import Optional

from dotenv import load_dotenv

# Values already present in the environment win over the .env file
load_dotenv()


class Settings:
    """Application settings"""

    # Environment
    ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')
    RUN_MODE = os.getenv('RUN_MODE', 'local')  # local or production

    # TFS collection
    TFS_API_URL = os.getenv('TFS_API_URL', 'http://localhost:8080/tfs/DefaultCollection')
    TFS_API_VERSION = os.getenv('TFS_API_VERSION', '5.0')

    # Credentials
    TFS_USERNAME = os.getenv('TFS_USERNAME')
    TFS_PASSWORD = os.getenv('TFS_PASSWORD')
    TFS_TOKEN = os.getenv('TFS_TOKEN')

    # Transport
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '30'))

    # Directory loading
    DIRECTORY_CONCURRENCY = int(os.getenv('DIRECTORY_CONCURRENCY', '1'))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE')

    @classmethod
    def is_local_mode(cls) -> bool:
        """Check if running in local mode"""
        return cls.RUN_MODE.lower() == 'local'

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production"""
        return cls.ENVIRONMENT.lower() == 'production'

    @classmethod
    def credentials(cls) -> Optional[tuple]:
        """Basic credentials, if a username was configured"""
        if cls.TFS_USERNAME:
            return (cls.TFS_USERNAME, cls.TFS_PASSWORD or '')
        return None

    @classmethod
    def validate(cls):
        """Validate required settings"""
        if cls.is_production():
            missing = []

            if not cls.TFS_API_URL:
                missing.append('TFS_API_URL')
            if not cls.TFS_TOKEN and not cls.TFS_USERNAME:
                missing.append('TFS_TOKEN or TFS_USERNAME')

            if missing:
                raise ValueError(f"Missing required settings for production: {', '.join(missing)}")

        if cls.DIRECTORY_CONCURRENCY < 1:
            raise ValueError("DIRECTORY_CONCURRENCY must be at least 1")


# Create settings instance
settings = Settings()
