from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import IngredientViewSet, TopUsageView

app_name = "inventory"

router = DefaultRouter()
router.register(r"ingredients", IngredientViewSet, basename="ingredient")

urlpatterns = [
    path("", include(router.urls)),
    path("top-usage/", TopUsageView.as_view(), name="top-usage"),
]
