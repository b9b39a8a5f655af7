"""
Repository pattern for database access
Centralizes all TableStorage operations behind typed repositories
"""

from .base import BaseRepository
from .credentials import CredentialRepository
from .csrf_tokens import CSRFTokenRepository

__all__ = [
    "BaseRepository",
    "CredentialRepository",
    "CSRFTokenRepository",
]
