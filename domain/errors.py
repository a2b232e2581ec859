"""
Domain: error taxonomy.

Every failure surfaced by the core is one of these kinds, each carrying a
human-readable message. The HTTP layer maps kinds to status codes; the core
itself stays transport-agnostic.
"""

from __future__ import annotations


class LandRegistryError(Exception):
    """Base exception for all land registry errors."""

    code: str = "LAND_REGISTRY_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(LandRegistryError):
    """Raised when a referenced entity does not exist."""

    code = "NOT_FOUND"


class InvalidStateError(LandRegistryError):
    """Raised when an entity's status does not permit the operation."""

    code = "INVALID_STATE"


class InvalidInputError(LandRegistryError, ValueError):
    """Raised for malformed or out-of-range arguments."""

    code = "VALIDATION_ERROR"


class ConflictError(LandRegistryError):
    """Raised when a uniqueness constraint would be violated."""

    code = "CONFLICT"


class AuthenticationError(LandRegistryError):
    """Raised when credentials or tokens cannot be verified."""

    code = "AUTHENTICATION_ERROR"


class PermissionDeniedError(LandRegistryError):
    """Raised when a caller's role lacks the required permission."""

    code = "INSUFFICIENT_PERMISSIONS"


class ConfigurationError(LandRegistryError):
    """Raised when configuration is invalid or missing."""

    code = "CONFIGURATION_ERROR"


class StoreError(LandRegistryError):
    """Raised when the entity store itself fails."""

    code = "STORE_ERROR"


__all__ = [
    "LandRegistryError",
    "NotFoundError",
    "InvalidStateError",
    "InvalidInputError",
    "ConflictError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ConfigurationError",
    "StoreError",
]
