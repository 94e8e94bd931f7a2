"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from django.apps import apps

from tenant.managers import set_current_tenant


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def reset_tenant_context():
    """
    Reset tenant context after each test.

    CRITICAL: This prevents tenant context from leaking between tests.
    If tenant context leaks, tests may pass when they should fail.
    """
    yield
    set_current_tenant(None)


@pytest.fixture(autouse=True)
def reset_stats_collector():
    """Start every test with empty operational counters."""
    collector = apps.get_app_config("core_backend").stats_collector
    if collector is not None:
        collector.reset()
    yield


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/orders/')
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, cashier, tenant):
    """
    API client logged in as the tenant's cashier, sending the X-Tenant header
    the TenantMiddleware resolves the tenant from.
    """
    api_client.force_authenticate(user=cashier)
    api_client.credentials(HTTP_X_TENANT=tenant.slug)
    return api_client


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *  # noqa: E402,F401,F403
