"""
hashtree - Proof Engine

Inclusion proof generation from a live HashTree and standalone
verification that never touches the tree again.

A proof lists the sibling digest at every level from the leaf up to
(but excluding) the root, each tagged with the side the sibling sits
on, plus the root digest at generation time. Proofs are frozen values:
mutating the tree afterwards leaves them intact but stale.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from hashtree.core.config import settings
from hashtree.crypto.errors import (
    IndexOutOfRange,
    InvalidProofError,
    UnsupportedAlgorithmError,
)
from hashtree.crypto.hashing import Digest, TreeHasher, get_default_hasher
from hashtree.crypto.tree import (
    HashTree,
    leaf_position,
    parent_position,
    sibling_position,
)
from hashtree.metrics import get_tree_metrics

logger = structlog.get_logger(__name__)


class ProofDirection(str, Enum):
    """Direction indicator for proof path elements."""

    LEFT = "L"
    RIGHT = "R"


@dataclass(frozen=True)
class ProofElement:
    """
    Single element in a proof path.

    Attributes:
        hash: The sibling digest at this level
        direction: Whether sibling is LEFT or RIGHT of the path
    """

    hash: Digest
    direction: ProofDirection

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary."""
        return {"hash": self.hash, "direction": self.direction.value}

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "ProofElement":
        """Deserialize from dictionary."""
        try:
            return cls(
                hash=data["hash"].lower(),
                direction=ProofDirection(data["direction"]),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidProofError(f"Malformed proof element: {data!r}") from e


@dataclass(frozen=True)
class MerkleProof:
    """
    Inclusion proof for one leaf slot.

    Attributes:
        leaf_index: Index of the proven leaf
        proof_path: Sibling digests with directions, leaf level first
        root_hash: Root digest when the proof was generated
        capacity: Tree capacity when the proof was generated
        algorithm: Hash algorithm the tree used
    """

    leaf_index: int
    proof_path: tuple[ProofElement, ...]
    root_hash: Digest
    capacity: int
    algorithm: str = "sha256"

    def verify(self, candidate: Any, hasher: TreeHasher | None = None) -> bool:
        """Check whether candidate occupies this proof's leaf slot."""
        return verify(self, candidate, hasher=hasher)

    def to_dict(self) -> dict[str, Any]:
        """Serialize proof to dictionary for storage."""
        return {
            "leaf_index": self.leaf_index,
            "proof_path": [e.to_dict() for e in self.proof_path],
            "root_hash": self.root_hash,
            "capacity": self.capacity,
            "algorithm": self.algorithm,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleProof":
        """
        Deserialize proof from dictionary.

        Raises:
            InvalidProofError: If required fields are missing or malformed
        """
        try:
            path = data["proof_path"]
            return cls(
                leaf_index=int(data["leaf_index"]),
                proof_path=tuple(ProofElement.from_dict(e) for e in path),
                root_hash=data["root_hash"].lower(),
                capacity=int(data["capacity"]),
                algorithm=data.get("algorithm", "sha256").lower(),
            )
        except InvalidProofError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidProofError(f"Malformed proof: {e}") from e

    def to_compact(self) -> list[str]:
        """
        Serialize to compact format (just the hashes with direction encoding).

        Format: ["L:hash1", "R:hash2", ...]
        """
        return [f"{e.direction.value}:{e.hash}" for e in self.proof_path]

    @classmethod
    def from_compact(
        cls,
        leaf_index: int,
        compact_path: list[str],
        root_hash: Digest,
        capacity: int,
        algorithm: str = "sha256",
    ) -> "MerkleProof":
        """
        Create proof from compact format.

        Raises:
            InvalidProofError: If an entry is not of the form "L:<hex>" or "R:<hex>"
        """
        proof_path = []
        for item in compact_path:
            direction, sep, hash_value = item.partition(":")
            if not sep:
                raise InvalidProofError(f"Malformed compact proof entry: {item!r}")
            try:
                proof_path.append(
                    ProofElement(
                        hash=hash_value.lower(),
                        direction=ProofDirection(direction),
                    )
                )
            except ValueError as e:
                raise InvalidProofError(f"Unknown proof direction: {direction!r}") from e
        return cls(
            leaf_index=leaf_index,
            proof_path=tuple(proof_path),
            root_hash=root_hash.lower(),
            capacity=capacity,
            algorithm=algorithm.lower(),
        )


def get_proof(tree: HashTree, leaf_index: int) -> MerkleProof:
    """
    Generate inclusion proof for a leaf slot.

    Slots past the element count may be proven too; their proofs never
    verify since the padding digest has no known preimage.

    Args:
        tree: Tree to read digests from
        leaf_index: Index of the leaf to prove

    Returns:
        MerkleProof with log2(capacity) path elements

    Raises:
        IndexOutOfRange: If leaf_index is outside [0, capacity)
    """
    if leaf_index < 0 or leaf_index >= tree.capacity:
        raise IndexOutOfRange(leaf_index, tree.capacity)

    started = time.perf_counter()
    proof_path = []
    position = leaf_position(tree.capacity, leaf_index)

    while position > 0:
        sibling = sibling_position(position)
        if sibling > position:
            # Current is left, sibling is right
            direction = ProofDirection.RIGHT
        else:
            direction = ProofDirection.LEFT
        proof_path.append(ProofElement(hash=tree.node_at(sibling), direction=direction))
        position = parent_position(position)

    proof = MerkleProof(
        leaf_index=leaf_index,
        proof_path=tuple(proof_path),
        root_hash=tree.root,
        capacity=tree.capacity,
        algorithm=tree.hasher.algorithm,
    )

    if settings.METRICS_ENABLED:
        get_tree_metrics().record_proof(time.perf_counter() - started)
    logger.debug(
        "Proof generated",
        leaf_index=leaf_index,
        path_length=len(proof_path),
        capacity=tree.capacity,
    )
    return proof


def compute_root_from_proof(
    leaf_hash: Digest,
    proof_path: tuple[ProofElement, ...] | list[ProofElement],
    hasher: TreeHasher | None = None,
) -> Digest:
    """
    Compute the root hash from a leaf digest and proof path.

    Args:
        leaf_hash: Digest of the leaf
        proof_path: Proof elements, leaf level first
        hasher: Hashing capability (defaults to the configured algorithm)

    Returns:
        Computed root digest
    """
    hasher = hasher or get_default_hasher()
    current_hash = leaf_hash

    for element in proof_path:
        if element.direction == ProofDirection.LEFT:
            # Sibling is on the left
            current_hash = hasher.hash_pair(element.hash, current_hash)
        else:
            # Sibling is on the right
            current_hash = hasher.hash_pair(current_hash, element.hash)

    return current_hash


def verify_proof_against_root(
    leaf_hash: Digest,
    proof_path: tuple[ProofElement, ...] | list[ProofElement],
    expected_root: Digest,
    hasher: TreeHasher | None = None,
) -> bool:
    """
    Verify a leaf digest and proof path against a specific root.

    Returns:
        True if the path reconstructs to expected_root
    """
    return compute_root_from_proof(leaf_hash, proof_path, hasher) == expected_root


def _resolve_hasher(proof: MerkleProof, hasher: TreeHasher | None) -> TreeHasher:
    if hasher is not None:
        return hasher
    default = get_default_hasher()
    if default.algorithm == str(proof.algorithm).lower():
        return default
    return TreeHasher(str(proof.algorithm))


def verify(proof: MerkleProof, candidate: Any, hasher: TreeHasher | None = None) -> bool:
    """
    Verify that candidate occupies the proof's leaf slot.

    Recomputes the root from hash_leaf(candidate) and the recorded
    sibling digests, then compares it with the proof's root. A
    non-member candidate or a malformed proof yields False.

    Args:
        proof: Proof to check against
        candidate: Value claimed to sit at proof.leaf_index
        hasher: Hashing capability (defaults to one for proof.algorithm)

    Returns:
        True if the recomputed root matches
    """
    try:
        hasher = _resolve_hasher(proof, hasher)
    except UnsupportedAlgorithmError as e:
        logger.debug("Malformed proof rejected", error=str(e))
        hasher = None

    if hasher is None:
        valid = False
    elif hasher.algorithm != str(proof.algorithm).lower():
        logger.debug(
            "Proof algorithm mismatch",
            proof_algorithm=proof.algorithm,
            hasher_algorithm=hasher.algorithm,
        )
        valid = False
    else:
        leaf_hash = hasher.hash_leaf(candidate)
        try:
            computed = compute_root_from_proof(leaf_hash, proof.proof_path, hasher)
            valid = computed == proof.root_hash.lower()
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug("Malformed proof rejected", error=str(e))
            valid = False

    if settings.METRICS_ENABLED:
        get_tree_metrics().record_verification(valid)
    return valid
