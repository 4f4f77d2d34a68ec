"""
hashtree - Cryptographic Core

Provides the hash engine, the append-only tree, and proof
generation and verification.
"""

from hashtree.crypto.errors import (
    HashTreeError,
    IndexOutOfRange,
    InvalidProofError,
    UnsupportedAlgorithmError,
)
from hashtree.crypto.hashing import (
    LEAF_PREFIX,
    NODE_PREFIX,
    Digest,
    TreeHasher,
    encode_element,
    get_default_hasher,
    hash_leaf,
    hash_pair,
)
from hashtree.crypto.proof import (
    MerkleProof,
    ProofDirection,
    ProofElement,
    compute_root_from_proof,
    get_proof,
    verify,
    verify_proof_against_root,
)
from hashtree.crypto.tree import HashTree, build, next_power_of_two, push, root

__all__ = [
    "HashTreeError",
    "IndexOutOfRange",
    "InvalidProofError",
    "UnsupportedAlgorithmError",
    "LEAF_PREFIX",
    "NODE_PREFIX",
    "Digest",
    "TreeHasher",
    "encode_element",
    "get_default_hasher",
    "hash_leaf",
    "hash_pair",
    "MerkleProof",
    "ProofDirection",
    "ProofElement",
    "compute_root_from_proof",
    "get_proof",
    "verify",
    "verify_proof_against_root",
    "HashTree",
    "build",
    "next_power_of_two",
    "push",
    "root",
]
