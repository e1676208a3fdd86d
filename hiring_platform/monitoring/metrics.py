"""Prometheus metrics for the hierarchy engine"""

import time
import logging
from typing import Dict
from collections import defaultdict
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# Structural mutation metrics
organization_moves_total = Counter(
    'organization_moves_total',
    'Total number of organization move attempts',
    ['outcome']
)

organization_move_depth_shift = Histogram(
    'organization_move_depth_shift',
    'Absolute depth shift applied to moved subtrees',
    buckets=[0, 1, 2, 3, 4, 5, 8, 13]
)

# Access metrics
access_checks_total = Counter(
    'access_checks_total',
    'Total number of organization access decisions',
    ['decision']
)

# Resource metrics
resource_clones_total = Counter(
    'resource_clones_total',
    'Total number of resource clone attempts',
    ['resource_type', 'outcome']
)

resource_listing_duration_seconds = Histogram(
    'resource_listing_duration_seconds',
    'Time spent partitioning resources into local and inherited buckets',
    ['resource_type'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

resource_listing_size = Histogram(
    'resource_listing_size',
    'Number of candidate resources classified per listing',
    ['resource_type'],
    buckets=[0, 10, 25, 50, 100, 250, 500, 1000, 5000]
)


class MetricsCollector:
    """Collector for hierarchy metrics with in-memory outcome counts"""

    def __init__(self):
        self.outcomes: Dict[str, int] = defaultdict(int)

    def record_move(self, outcome: str, depth_shift: int = None):
        """Record an organization move attempt"""
        organization_moves_total.labels(outcome=outcome).inc()
        self.outcomes[f"move_{outcome}"] += 1

        if depth_shift is not None:
            organization_move_depth_shift.observe(abs(depth_shift))

    def record_access_check(self, granted: bool):
        """Record an access decision"""
        decision = "granted" if granted else "denied"
        access_checks_total.labels(decision=decision).inc()
        self.outcomes[f"access_{decision}"] += 1

    def record_clone(self, resource_type: str, outcome: str):
        """Record a resource clone attempt"""
        resource_clones_total.labels(
            resource_type=resource_type,
            outcome=outcome
        ).inc()
        self.outcomes[f"clone_{resource_type}_{outcome}"] += 1

    def record_listing(self, resource_type: str, candidates: int, duration_seconds: float):
        """Record a local/inherited listing"""
        resource_listing_duration_seconds.labels(
            resource_type=resource_type
        ).observe(duration_seconds)

        resource_listing_size.labels(
            resource_type=resource_type
        ).observe(candidates)

        self.outcomes[f"listing_{resource_type}"] += 1

    def get_outcome_count(self, key: str) -> int:
        """Return how often an outcome was recorded by this process"""
        return self.outcomes.get(key, 0)


# Global metrics collector instance
metrics_collector = MetricsCollector()


class MetricsTimer:
    """Context manager for timing operations"""

    def __init__(self, callback):
        self.callback = callback
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        self.callback(duration)
        return False
