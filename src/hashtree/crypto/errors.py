"""
hashtree - Error Types
"""


class HashTreeError(Exception):
    """Base exception for hash tree errors."""

    pass


class IndexOutOfRange(HashTreeError, IndexError):
    """Leaf or slot index outside the tree's current capacity."""

    def __init__(self, index: int, capacity: int) -> None:
        super().__init__(f"Index {index} out of range for capacity {capacity}")
        self.index = index
        self.capacity = capacity


class UnsupportedAlgorithmError(HashTreeError, ValueError):
    """Hash algorithm is unknown or has no fixed digest size."""

    pass


class InvalidProofError(HashTreeError, ValueError):
    """Serialized proof could not be decoded."""

    pass
