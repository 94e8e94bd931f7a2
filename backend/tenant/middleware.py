import logging

from django.conf import settings
from django.http import JsonResponse

from .models import Tenant
from .managers import set_current_tenant

logger = logging.getLogger(__name__)


class TenantNotFoundError(Exception):
    """Raised when tenant cannot be resolved from request."""
    pass


class TenantMiddleware:
    """
    Resolves tenant from request and attaches it to request.tenant.

    Resolution precedence (highest to lowest):
    1. X-Tenant header (slug) - POS terminals and back office clients
    2. Development fallback - DEFAULT_TENANT_SLUG when DEBUG is on
    3. Fail with 400

    Tenant provisioning and authentication live outside this service; the
    order engine only consumes the resolved tenant through the thread-local
    context read by TenantManager.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # Admin operates without tenant context (staff can manage all tenants)
        if request.path.startswith('/admin/') or request.path.startswith('/api/health/'):
            request.tenant = None
            set_current_tenant(None)
            return self.get_response(request)

        try:
            tenant = self.get_tenant_from_request(request)
            request.tenant = tenant

            # CRITICAL: Set thread-local context for TenantManager
            set_current_tenant(tenant)

            if not tenant.is_active:
                return JsonResponse({
                    'error': 'Tenant account is inactive',
                    'code': 'TENANT_INACTIVE'
                }, status=403)

            return self.get_response(request)

        except TenantNotFoundError as e:
            return JsonResponse({
                'error': str(e),
                'code': 'TENANT_NOT_FOUND'
            }, status=400)

        finally:
            # CRITICAL: Always clean up thread-local context
            set_current_tenant(None)

    def get_tenant_from_request(self, request):
        tenant_slug = request.headers.get('X-Tenant')
        if tenant_slug:
            try:
                return Tenant.objects.get(slug=tenant_slug)
            except Tenant.DoesNotExist:
                raise TenantNotFoundError(f"Tenant '{tenant_slug}' not found")

        if settings.DEBUG and getattr(settings, 'DEFAULT_TENANT_SLUG', None):
            try:
                return Tenant.objects.get(slug=settings.DEFAULT_TENANT_SLUG)
            except Tenant.DoesNotExist:
                logger.warning(
                    f"Default tenant '{settings.DEFAULT_TENANT_SLUG}' does not exist"
                )

        raise TenantNotFoundError(
            "Unable to resolve tenant. Send the tenant slug in the X-Tenant header."
        )
