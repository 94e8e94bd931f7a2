"""
Custom exceptions for the COGS system.
"""
from rest_framework import status

from core_backend.exceptions import DomainError


class COGSError(DomainError):
    """Base exception for COGS-related errors."""

    status_code = status.HTTP_409_CONFLICT
    code = "cogs_error"


class BundleNestingError(COGSError):
    """Raised when a bundle component is itself a bundle."""

    code = "bundle_nesting"

    def __init__(self, bundle, component, message=None):
        self.bundle = bundle
        self.component = component
        if message is None:
            message = (
                f"Bundle '{bundle.name}' contains bundle '{component.name}'; "
                f"nested bundles are not supported"
            )
        super().__init__(message)
