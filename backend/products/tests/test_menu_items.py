"""
Menu item catalog tests.
"""
import pytest

from core_backend.tests.fixtures import make_menu_item
from products.models import MenuItem


@pytest.mark.django_db
class TestMenuItemArchiving:

    def test_delete_archives(self, tenant, cashier):
        item = make_menu_item(tenant, "Seasonal Latte", 30000)

        item.delete()

        assert not MenuItem.objects.filter(pk=item.pk).exists()
        archived = MenuItem.objects.with_archived().get(pk=item.pk)
        assert archived.is_archived
        assert archived.archived_at is not None

    def test_archive_records_who_archived(self, tenant, cashier):
        item = make_menu_item(tenant, "Seasonal Latte", 30000)

        item.archive(archived_by=cashier)

        archived = MenuItem.all_objects.get(pk=item.pk)
        assert archived.is_active is False
        assert archived.archived_by == cashier

    def test_archived_items_listed_separately(self, tenant, latte):
        make_menu_item(tenant, "Old Blend", 15000).archive()

        assert [i.name for i in MenuItem.objects.archived_only()] == ["Old Blend"]
        assert list(MenuItem.objects.all()) == [latte]
