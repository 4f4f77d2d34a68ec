"""
Pytest configuration and shared fixtures for hash tree tests.
"""

import pytest
from prometheus_client import REGISTRY

from hashtree.core.logging import setup_logging
from hashtree.crypto.hashing import TreeHasher
from hashtree.crypto.tree import HashTree

setup_logging()


@pytest.fixture
def hasher() -> TreeHasher:
    """Create a SHA-256 hasher."""
    return TreeHasher("sha256")


@pytest.fixture
def empty_tree(hasher: TreeHasher) -> HashTree:
    """Create a tree with no elements."""
    return HashTree.build([], hasher=hasher)


@pytest.fixture
def three_tree(hasher: TreeHasher) -> HashTree:
    """Create the [1, 2, 3] tree (capacity 4, one padding leaf)."""
    return HashTree.build([1, 2, 3], hasher=hasher)


@pytest.fixture
def sample_elements() -> list[bytes]:
    """Create a list of distinct byte elements."""
    return [f"element-{i}".encode() for i in range(13)]


@pytest.fixture
def sample_value():
    """Read a metric sample, treating a missing sample as zero."""

    def _read(name: str, labels: dict[str, str] | None = None) -> float:
        value = REGISTRY.get_sample_value(name, labels or {})
        return value or 0.0

    return _read
