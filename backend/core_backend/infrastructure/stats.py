"""
Operational counters for the order/inventory engine.

Services never keep counters in module globals. They ask for the collector
owned by the core_backend app config, which can be swapped through the
STATS_COLLECTOR setting (e.g. for a statsd-backed implementation).
"""

import threading
from collections import defaultdict

from django.apps import apps


class StatsCollector:
    """No-op collector. Subclasses decide where the numbers go."""

    def increment(self, name, value=1, **tags):
        pass

    def snapshot(self):
        return {}

    def reset(self):
        pass


class InMemoryStatsCollector(StatsCollector):
    """Thread-safe in-process counters, keyed by metric name."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters = defaultdict(int)

    def increment(self, name, value=1, **tags):
        with self._lock:
            self._counters[name] += value

    def snapshot(self):
        with self._lock:
            return dict(self._counters)

    def reset(self):
        with self._lock:
            self._counters.clear()


def get_stats_collector():
    """Return the process-wide collector built by CoreBackendConfig.ready()."""
    config = apps.get_app_config("core_backend")
    if config.stats_collector is None:
        config.stats_collector = StatsCollector()
    return config.stats_collector
