"""
hashtree - Tree Metrics

Prometheus metrics for hash tree operations.

Metrics Categories:
- Tree construction
- Incremental appends and capacity growth
- Proof generation and verification
"""

import structlog
from prometheus_client import Counter, Gauge, Histogram

logger = structlog.get_logger(__name__)


class TreeMetrics:
    """
    Centralized metrics for the hash tree engine.

    Provides visibility into:
    - Build times and tree sizes
    - Push volume and reallocations
    - Proof generation cost and verification outcomes
    """

    def __init__(self) -> None:
        """Initialize all tree metrics."""
        self._init_build_metrics()
        self._init_push_metrics()
        self._init_proof_metrics()

    def _init_build_metrics(self) -> None:
        """Initialize tree construction metrics."""
        self.build_duration = Histogram(
            "hashtree_build_duration_seconds",
            "Hash tree build time",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
        )

        self.tree_size = Histogram(
            "hashtree_build_elements",
            "Number of elements in built trees",
            buckets=[1, 10, 50, 100, 500, 1000, 5000, 10000, 50000],
        )

    def _init_push_metrics(self) -> None:
        """Initialize append metrics."""
        self.pushes = Counter(
            "hashtree_pushes_total",
            "Total elements appended to existing trees",
        )

        self.growths = Counter(
            "hashtree_capacity_growths_total",
            "Times a full tree doubled its capacity",
        )

        self.last_capacity = Gauge(
            "hashtree_last_capacity",
            "Capacity of the most recently grown tree",
        )

    def _init_proof_metrics(self) -> None:
        """Initialize proof metrics."""
        self.proof_generation = Histogram(
            "hashtree_proof_duration_seconds",
            "Proof generation time",
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01],
        )

        self.verifications = Counter(
            "hashtree_verifications_total",
            "Proof verifications",
            ["result"],
        )

    # Convenience methods

    def record_build(self, duration: float, element_count: int) -> None:
        """Record tree build."""
        self.build_duration.observe(duration)
        self.tree_size.observe(element_count)

    def record_push(self) -> None:
        """Record single-element append."""
        self.pushes.inc()

    def record_growth(self, capacity: int) -> None:
        """Record capacity doubling."""
        self.growths.inc()
        self.last_capacity.set(capacity)

    def record_proof(self, duration: float) -> None:
        """Record proof generation."""
        self.proof_generation.observe(duration)

    def record_verification(self, valid: bool) -> None:
        """Record proof verification."""
        result = "valid" if valid else "invalid"
        self.verifications.labels(result=result).inc()


# Singleton instance
_tree_metrics: TreeMetrics | None = None


def get_tree_metrics() -> TreeMetrics:
    """Get global tree metrics instance."""
    global _tree_metrics
    if _tree_metrics is None:
        _tree_metrics = TreeMetrics()
        logger.debug("Tree metrics initialized")
    return _tree_metrics
