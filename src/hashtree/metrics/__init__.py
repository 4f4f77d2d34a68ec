"""
hashtree - Metrics Module

Prometheus metrics for tree builds, appends, proofs and verifications.
"""

from hashtree.metrics.tree_metrics import (
    TreeMetrics,
    get_tree_metrics,
)

__all__ = [
    "TreeMetrics",
    "get_tree_metrics",
]
