from rest_framework import viewsets, filters
from django_filters.rest_framework import DjangoFilterBackend


class TenantScopedQuerysetMixin:
    """
    Re-evaluates the class-level queryset at request time.

    The class attribute is built at import time, before any tenant context
    exists, so it must be rebuilt from Model.objects for TenantManager to
    apply the current tenant.
    """

    def get_queryset(self):
        if getattr(self, 'queryset', None) is None:
            return super().get_queryset()

        manager = self.queryset.model.objects
        # Archivable models honour ?include_archived=true|only
        if hasattr(manager, 'with_archived'):
            include_archived = self.request.query_params.get('include_archived', '').lower()
            if include_archived in ['true', '1', 'yes']:
                return manager.with_archived()
            if include_archived == 'only':
                return manager.archived_only()
        return manager.all()


class BaseReadOnlyViewSet(TenantScopedQuerysetMixin, viewsets.ReadOnlyModelViewSet):
    """
    Read-only base with the standard filter backends.

    Usage:
        class IngredientViewSet(BaseReadOnlyViewSet):
            queryset = Ingredient.objects.all()
            serializer_class = IngredientSerializer
    """

    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter,
    ]
    ordering = ['-id']
