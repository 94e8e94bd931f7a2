from django.apps import AppConfig
from django.conf import settings
from django.utils.module_loading import import_string
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    # Built in ready(); services read it through get_stats_collector()
    stats_collector = None

    def ready(self):
        """
        Initialize core backend services when Django starts up.
        The stats collector lives for the lifetime of the process and is
        owned by this app config rather than by any module.
        """
        self.stats_collector = self._build_stats_collector()

    def _build_stats_collector(self):
        dotted_path = getattr(settings, "STATS_COLLECTOR", None)
        if not dotted_path:
            from core_backend.infrastructure.stats import StatsCollector

            logger.debug("STATS_COLLECTOR not configured, using no-op collector")
            return StatsCollector()

        collector_class = import_string(dotted_path)
        logger.debug(f"Stats collector initialized: {dotted_path}")
        return collector_class()
