"""
Soft delete (archiving) infrastructure for catalog records.

Ingredients and menu items are referenced by stock history and by placed
orders, so they are archived instead of being removed from the database.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):

    def active(self):
        """Return only active (non-archived) records."""
        return self.filter(is_active=True)

    def archived(self):
        """Return only archived records."""
        return self.filter(is_active=False)


class SoftDeleteMixin(models.Model):
    """
    Abstract base class for archivable records.

    Provides is_active / archived_at / archived_by and makes delete() an
    archive.
    """

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive records are considered archived."
    )
    archived_at = models.DateTimeField(null=True, blank=True)
    archived_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(app_label)s_%(class)s_archived",
    )

    class Meta:
        abstract = True

    def archive(self, archived_by=None):
        self.is_active = False
        self.archived_at = timezone.now()
        if archived_by:
            self.archived_by = archived_by
        self.save(update_fields=['is_active', 'archived_at', 'archived_by'])

    @property
    def is_archived(self):
        return not self.is_active

    def delete(self, using=None, keep_parents=False):
        self.archive()
