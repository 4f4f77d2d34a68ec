"""
hashtree - Tamper-Evident Hash Tree

Builds a binary hash tree over an ordered sequence, supports cheap
appends, and produces short inclusion proofs that verify against the
root digest alone.

Example:
    >>> from hashtree import build, verify
    >>> tree = build([1, 2, 3])
    >>> verify(tree.get_proof(1), 2)
    True
"""

from hashtree.crypto import (
    Digest,
    HashTree,
    HashTreeError,
    IndexOutOfRange,
    InvalidProofError,
    MerkleProof,
    ProofDirection,
    ProofElement,
    TreeHasher,
    UnsupportedAlgorithmError,
    build,
    get_proof,
    push,
    root,
    verify,
)

__version__ = "1.0.0"

__all__ = [
    "Digest",
    "HashTree",
    "HashTreeError",
    "IndexOutOfRange",
    "InvalidProofError",
    "MerkleProof",
    "ProofDirection",
    "ProofElement",
    "TreeHasher",
    "UnsupportedAlgorithmError",
    "build",
    "get_proof",
    "push",
    "root",
    "verify",
]
