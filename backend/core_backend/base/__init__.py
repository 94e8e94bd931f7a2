"""
Base classes shared by the app viewsets.
"""
from .viewsets import BaseReadOnlyViewSet, TenantScopedQuerysetMixin

__all__ = [
    'BaseReadOnlyViewSet',
    'TenantScopedQuerysetMixin',
]
