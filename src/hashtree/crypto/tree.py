"""
hashtree - Tree Engine

Complete binary hash tree stored in a single flat list of digests.

Layout for a tree of capacity C (always a power of two):
- Slot 0 holds the root
- Node n has children 2n + 1 and 2n + 2
- Leaves occupy the contiguous block [C - 1, 2C - 1)

Leaf slots past the element count hold the hasher's padding digest.
Appending rehashes only the path from the new leaf to the root; a full
tree doubles its capacity first.
"""

import time
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

from hashtree.core.config import settings
from hashtree.crypto.errors import IndexOutOfRange
from hashtree.crypto.hashing import Digest, TreeHasher, get_default_hasher
from hashtree.metrics import get_tree_metrics

if TYPE_CHECKING:
    from hashtree.crypto.proof import MerkleProof

logger = structlog.get_logger(__name__)


def next_power_of_two(count: int) -> int:
    """Smallest power of two >= count, with a minimum of 1."""
    if count <= 1:
        return 1
    return 1 << (count - 1).bit_length()


def leaf_position(capacity: int, leaf_index: int) -> int:
    """Slot holding the given leaf."""
    return capacity - 1 + leaf_index


def parent_position(position: int) -> int:
    return (position - 1) // 2


def sibling_position(position: int) -> int:
    # Left children sit at odd slots, right children at even ones.
    return position + 1 if position % 2 == 1 else position - 1


def _rehash_internal(nodes: list[Digest], capacity: int, hasher: TreeHasher) -> None:
    """Recompute every internal node bottom-up from the leaves."""
    for position in range(capacity - 2, -1, -1):
        nodes[position] = hasher.hash_pair(
            nodes[2 * position + 1],
            nodes[2 * position + 2],
        )


class HashTree:
    """
    Append-only hash tree with power-of-two capacity.

    Features:
    - Deterministic construction from ordered elements
    - Domain separation for leaf and internal nodes
    - Path-only recomputation on push
    - Automatic capacity doubling when full
    - Fixed-length inclusion proofs

    Example:
        >>> tree = HashTree.build([1, 2, 3])
        >>> tree.capacity
        4
        >>> proof = tree.get_proof(1)
        >>> proof.verify(2)
        True
    """

    def __init__(
        self,
        nodes: list[Digest],
        capacity: int,
        element_count: int,
        hasher: TreeHasher,
    ) -> None:
        """
        Initialize hash tree (internal use).

        Use build() to construct trees.
        """
        self._nodes = nodes
        self._capacity = capacity
        self._element_count = element_count
        self._hasher = hasher

    @classmethod
    def build(
        cls,
        elements: Iterable[Any] = (),
        hasher: TreeHasher | None = None,
    ) -> "HashTree":
        """
        Construct a hash tree from an ordered sequence of elements.

        An empty sequence yields a capacity-1 tree holding a single
        padding leaf, ready to be pushed into.

        Args:
            elements: Ordered elements to commit to
            hasher: Hashing capability (defaults to the configured algorithm)

        Returns:
            Constructed HashTree
        """
        hasher = hasher or get_default_hasher()
        elements = list(elements)
        started = time.perf_counter()

        count = len(elements)
        capacity = next_power_of_two(count)
        nodes = [hasher.padding_digest] * (2 * capacity - 1)

        offset = leaf_position(capacity, 0)
        for i, element in enumerate(elements):
            nodes[offset + i] = hasher.hash_leaf(element)

        _rehash_internal(nodes, capacity, hasher)
        tree = cls(nodes, capacity, count, hasher)

        duration = time.perf_counter() - started
        if settings.METRICS_ENABLED:
            get_tree_metrics().record_build(duration, count)
        logger.debug(
            "Hash tree built",
            element_count=count,
            capacity=capacity,
            algorithm=hasher.algorithm,
            duration=duration,
        )
        return tree

    @property
    def hasher(self) -> TreeHasher:
        """Get the hashing capability used by this tree."""
        return self._hasher

    @property
    def capacity(self) -> int:
        """Number of leaf slots currently allocated."""
        return self._capacity

    @property
    def element_count(self) -> int:
        """Number of real (non-padding) elements."""
        return self._element_count

    @property
    def padding(self) -> int:
        """Number of leaf slots holding the padding digest."""
        return self._capacity - self._element_count

    @property
    def height(self) -> int:
        """Number of levels, leaves and root included."""
        return self._capacity.bit_length()

    @property
    def is_empty(self) -> bool:
        return self._element_count == 0

    @property
    def is_full(self) -> bool:
        return self._element_count == self._capacity

    @property
    def root(self) -> Digest:
        """Get the root digest."""
        return self._nodes[0]

    @property
    def root_hash(self) -> Digest:
        """Alias of root, matching MerkleProof.root_hash."""
        return self.root

    @property
    def leaves(self) -> tuple[Digest, ...]:
        """Get all leaf digests, padding included."""
        offset = leaf_position(self._capacity, 0)
        return tuple(self._nodes[offset:])

    def __len__(self) -> int:
        return self._element_count

    def __repr__(self) -> str:
        return (
            f"HashTree(element_count={self._element_count}, "
            f"capacity={self._capacity}, root={self.root[:16]}...)"
        )

    def digest_at(self, leaf_index: int) -> Digest:
        """
        Get the digest stored in a leaf slot.

        Args:
            leaf_index: Leaf index (0-based)

        Returns:
            Hex-encoded leaf digest (padding digest for unused slots)

        Raises:
            IndexOutOfRange: If leaf_index is outside [0, capacity)
        """
        if leaf_index < 0 or leaf_index >= self._capacity:
            raise IndexOutOfRange(leaf_index, self._capacity)
        return self._nodes[leaf_position(self._capacity, leaf_index)]

    def node_at(self, position: int) -> Digest:
        """
        Get the digest at a raw storage slot.

        Raises:
            IndexOutOfRange: If position is outside the node storage
        """
        if position < 0 or position >= len(self._nodes):
            raise IndexOutOfRange(position, len(self._nodes))
        return self._nodes[position]

    def push(self, element: Any) -> None:
        """
        Append an element to the tree.

        Only the new leaf's ancestors are rehashed. A full tree doubles
        its capacity before the insertion.

        Args:
            element: Element to append
        """
        digest = self._hasher.hash_leaf(element)

        if self.is_full:
            self._grow()

        position = leaf_position(self._capacity, self._element_count)
        self._nodes[position] = digest
        self._element_count += 1

        while position > 0:
            position = parent_position(position)
            self._nodes[position] = self._hasher.hash_pair(
                self._nodes[2 * position + 1],
                self._nodes[2 * position + 2],
            )

        if settings.METRICS_ENABLED:
            get_tree_metrics().record_push()

    def extend(self, elements: Iterable[Any]) -> None:
        """Append several elements in order."""
        for element in elements:
            self.push(element)

    def _grow(self) -> None:
        """Double the capacity and recompute all internal levels."""
        old_capacity = self._capacity
        capacity = old_capacity * 2

        nodes = [self._hasher.padding_digest] * (2 * capacity - 1)
        offset = leaf_position(capacity, 0)
        nodes[offset:offset + old_capacity] = self._nodes[leaf_position(old_capacity, 0):]
        _rehash_internal(nodes, capacity, self._hasher)

        self._nodes = nodes
        self._capacity = capacity

        if settings.METRICS_ENABLED:
            get_tree_metrics().record_growth(capacity)
        logger.info(
            "Hash tree capacity grown",
            old_capacity=old_capacity,
            capacity=capacity,
            element_count=self._element_count,
        )

    def copy(self) -> "HashTree":
        """Return an independent snapshot of this tree."""
        return HashTree(
            list(self._nodes),
            self._capacity,
            self._element_count,
            self._hasher,
        )

    def get_proof(self, leaf_index: int) -> "MerkleProof":
        """Generate an inclusion proof for a leaf slot."""
        from hashtree.crypto.proof import get_proof

        return get_proof(self, leaf_index)

    def get_all_proofs(self) -> list["MerkleProof"]:
        """
        Generate proofs for all real elements.

        Returns:
            List of MerkleProof, one per element in order
        """
        return [self.get_proof(i) for i in range(self._element_count)]


def build(elements: Iterable[Any] = (), hasher: TreeHasher | None = None) -> HashTree:
    """Construct a hash tree from elements."""
    return HashTree.build(elements, hasher=hasher)


def push(tree: HashTree, element: Any) -> None:
    """Append an element to a tree."""
    tree.push(element)


def root(tree: HashTree) -> Digest:
    """Get a tree's root digest."""
    return tree.root
