"""
Shift API integration tests.
"""
import pytest
from decimal import Decimal

from rest_framework import status

from shifts.models import Shift

SHIFTS_URL = "/api/shifts/"


@pytest.mark.django_db
class TestShiftAPI:

    def test_open_current_close(self, authenticated_client):
        opened = authenticated_client.post(f"{SHIFTS_URL}open/", {"starting_cash": "50000"}, format="json")
        assert opened.status_code == status.HTTP_201_CREATED
        assert opened.data["cashier_name"] == "Sari Kasir"

        current = authenticated_client.get(f"{SHIFTS_URL}current/")
        assert current.status_code == status.HTTP_200_OK
        assert current.data["id"] == opened.data["id"]

        closed = authenticated_client.post(f"{SHIFTS_URL}close/", {"ending_cash": "49000"}, format="json")
        assert closed.status_code == status.HTTP_200_OK
        assert Decimal(closed.data["difference"]) == Decimal("-1000")
        assert closed.data["status"] == "closed"

    def test_second_open_is_409(self, authenticated_client, open_shift):
        response = authenticated_client.post(f"{SHIFTS_URL}open/", {}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error"] == "Shift already open"
        assert Shift.all_objects.filter(end_time__isnull=True).count() == 1

    def test_no_current_shift_is_404(self, authenticated_client):
        response = authenticated_client.get(f"{SHIFTS_URL}current/")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_cash_transaction_moves_drawer(self, authenticated_client, open_shift):
        response = authenticated_client.post(
            f"{SHIFTS_URL}cash-transactions/",
            {"transaction_type": "out", "amount": "20000", "category": "Supplies"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["shift"] == open_shift.pk
        open_shift.refresh_from_db()
        assert open_shift.current_cash == Decimal("80000")

    def test_kasbon_and_settle(self, authenticated_client, open_shift):
        created = authenticated_client.post(
            f"{SHIFTS_URL}debts/",
            {"debt_type": "kasbon", "person_name": "Andi", "amount": "10000"},
            format="json",
        )
        assert created.status_code == status.HTTP_201_CREATED
        assert created.data["status"] == "pending"

        url = f"{SHIFTS_URL}debts/{created.data['id']}/settle/"
        settled = authenticated_client.post(url)
        again = authenticated_client.post(url)

        assert settled.status_code == status.HTTP_200_OK
        assert settled.data["status"] == "settled"
        assert again.status_code == status.HTTP_409_CONFLICT
        open_shift.refresh_from_db()
        assert open_shift.current_cash == Decimal("100000")

    def test_activities_of_open_shift(self, authenticated_client, open_shift):
        authenticated_client.post(
            f"{SHIFTS_URL}cash-transactions/",
            {"transaction_type": "in", "amount": "30000", "category": "Capital"},
            format="json",
        )

        response = authenticated_client.get(f"{SHIFTS_URL}activities/")

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]["type"] == "adjustment"
        assert response.data[0]["description"] == "Cash In: Capital"
