"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import Dict, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Support API
    api_base_url: str = "http://localhost:5000/api"
    support_path: str = "/support"

    # HTTP timeouts (seconds)
    http_connect_timeout: float = 5.0
    http_read_timeout: float = 30.0
    http_write_timeout: float = 10.0
    http_pool_timeout: float = 5.0

    # Session
    login_route: str = "/login"
    credentials_file: str = "~/.ticketdesk/session.json"

    # Lifecycle
    poll_interval_seconds: float = 30.0
    default_resolution: str = "Issue resolved by technician."

    # Used when the technician directory cannot be reached
    fallback_technicians: List[Dict[str, str]] = [
        {"_id": "1", "name": "John Doe"},
        {"_id": "2", "name": "Jane Smith"},
        {"_id": "3", "name": "Mike Johnson"},
    ]

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
