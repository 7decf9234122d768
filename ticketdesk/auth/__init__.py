"""
Session and navigation collaborators
"""
from .credentials import (
    SessionUser,
    CredentialProvider,
    InMemoryCredentialProvider,
    FileCredentialProvider,
    Navigator,
    invalidate_session,
)

__all__ = [
    "SessionUser",
    "CredentialProvider",
    "InMemoryCredentialProvider",
    "FileCredentialProvider",
    "Navigator",
    "invalidate_session",
]
