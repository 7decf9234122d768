"""
Utility functions
"""
from .http_client import HTTPClient, DEFAULT_TIMEOUT
from .secure_logging import (
    SensitiveDataFilter,
    SecureFormatter,
    JSONSecureFormatter,
    SENSITIVE_PATTERNS,
    configure_secure_logging,
)

__all__ = [
    # HTTP
    "HTTPClient",
    "DEFAULT_TIMEOUT",
    # Secure Logging
    "SensitiveDataFilter",
    "SecureFormatter",
    "JSONSecureFormatter",
    "SENSITIVE_PATTERNS",
    "configure_secure_logging",
]
