from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    CashTransactionViewSet,
    CloseShiftView,
    CurrentShiftView,
    DebtViewSet,
    OpenShiftView,
    ShiftActivitiesView,
)

app_name = "shifts"

router = DefaultRouter()
router.register(r"cash-transactions", CashTransactionViewSet, basename="cash-transaction")
router.register(r"debts", DebtViewSet, basename="debt")

urlpatterns = [
    path("current/", CurrentShiftView.as_view(), name="current"),
    path("activities/", ShiftActivitiesView.as_view(), name="activities"),
    path("open/", OpenShiftView.as_view(), name="open"),
    path("close/", CloseShiftView.as_view(), name="close"),
    path("", include(router.urls)),
]
