"""
Exception handler and stats collector tests.
"""
import pytest
from decimal import Decimal

from django.apps import apps
from rest_framework import status
from rest_framework.exceptions import ValidationError

from core_backend.exceptions import (
    DeletionForbiddenError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    domain_exception_handler,
)
from core_backend.infrastructure.stats import InMemoryStatsCollector, get_stats_collector


class FakeIngredient:
    name = "Milk"


class TestDomainExceptionHandler:

    def test_domain_error_body(self):
        response = domain_exception_handler(InvalidTransitionError("Order already paid"), {})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {"error": "Order already paid", "code": "invalid_transition"}

    def test_not_found_message(self):
        response = domain_exception_handler(NotFoundError("Order", "abc"), {})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error"] == "Order 'abc' not found"

    def test_insufficient_stock_message(self):
        error = InsufficientStockError(FakeIngredient(), Decimal("150"), Decimal("100"))

        response = domain_exception_handler(error, {})

        assert response.data["error"] == "Insufficient stock for Milk. Available: 100, Requested: 150"

    def test_deletion_forbidden_is_403(self):
        response = domain_exception_handler(DeletionForbiddenError(), {})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error"] == "Cannot delete a paid or completed order"

    def test_drf_errors_keep_default_handling(self):
        response = domain_exception_handler(ValidationError({"status": ["Invalid"]}), {})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "status" in response.data

    def test_unexpected_errors_are_hidden(self, caplog):
        with caplog.at_level("ERROR", logger="core_backend"):
            response = domain_exception_handler(RuntimeError("db password is hunter2"), {})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {"error": "Internal server error", "code": "server_error"}
        assert "hunter2" in caplog.text


class TestStatsCollector:

    def test_collector_is_owned_by_app_config(self):
        collector = get_stats_collector()

        assert collector is apps.get_app_config("core_backend").stats_collector
        assert isinstance(collector, InMemoryStatsCollector)

    def test_increment_and_reset(self):
        collector = InMemoryStatsCollector()

        collector.increment("orders.settled")
        collector.increment("orders.settled", 2)

        assert collector.snapshot() == {"orders.settled": 3}
        collector.reset()
        assert collector.snapshot() == {}
