from django.db import models
from threading import local

# Thread-local storage for current tenant
_thread_locals = local()


def set_current_tenant(tenant):
    """
    Set the current tenant for this thread.

    Args:
        tenant: Tenant instance or None to clear

    Called by TenantMiddleware (and tests) to establish tenant context for
    the current request.
    """
    _thread_locals.tenant = tenant


def get_current_tenant():
    """
    Get the current tenant for this thread.

    Returns:
        Tenant instance or None if no tenant context is set
    """
    return getattr(_thread_locals, 'tenant', None)


class TenantManager(models.Manager):
    """
    Automatically filters querysets by current tenant.

    FAILS CLOSED: Returns empty queryset if no tenant context is set.
    This prevents accidental data leakage across tenants.

    Usage:
        class Ingredient(models.Model):
            tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE)

            objects = TenantManager()       # tenant-filtered
            all_objects = models.Manager()  # unfiltered, admin/scripts only
    """

    def get_queryset(self):
        tenant = get_current_tenant()

        if tenant:
            return super().get_queryset().filter(tenant=tenant)

        # FAIL CLOSED: Return empty queryset if no tenant context
        return super().get_queryset().none()


class TenantSoftDeleteManager(models.Manager):
    """
    Manager for models with BOTH multi-tenancy AND soft delete.

    objects = TenantSoftDeleteManager() returns active records of the current
    tenant; with_archived() includes archived ones.
    """

    def _base_queryset(self):
        from core_backend.utils.archiving import SoftDeleteQuerySet

        qs = SoftDeleteQuerySet(self.model, using=self._db)
        tenant = get_current_tenant()
        if tenant:
            return qs.filter(tenant=tenant)
        # FAIL CLOSED
        return qs.none()

    def get_queryset(self):
        return self._base_queryset().active()

    def with_archived(self):
        return self._base_queryset()

    def archived_only(self):
        return self._base_queryset().archived()
