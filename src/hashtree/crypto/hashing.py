"""
hashtree - Hash Engine

Wraps a fixed-size hashlib algorithm behind the two operations the tree
needs: hashing a leaf element and combining two child digests.

Hashing follows RFC 6962 (Certificate Transparency) conventions:
- Leaf nodes are hashed with a 0x00 prefix
- Internal nodes are hashed with a 0x01 prefix
- This prevents second preimage attacks

Digests are carried as lowercase hex strings.
"""

import hashlib
import json
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from hashtree.core.config import settings
from hashtree.crypto.errors import UnsupportedAlgorithmError

Digest = str
ElementEncoder = Callable[[Any], bytes]

# Prefix bytes for domain separation (RFC 6962)
LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"

# Element type tags, one per encoding family
BYTES_TAG = b"b"
STR_TAG = b"s"
JSON_TAG = b"j"

_JSON_SCALARS = (type(None), bool, int, float, str)


def _check_json_value(value: Any) -> None:
    """Reject values JSON would silently coerce into another value's form."""
    if type(value) in _JSON_SCALARS:
        return
    if type(value) is list:
        for item in value:
            _check_json_value(item)
        return
    if type(value) is dict:
        for key, item in value.items():
            if type(key) is not str:
                raise TypeError(f"Mapping keys must be str, got {type(key).__name__}")
            _check_json_value(item)
        return
    raise TypeError(f"Cannot encode element of type {type(value).__name__}")


def encode_element(element: Any) -> bytes:
    """
    Map an element to the bytes fed to the leaf hash.

    Each encoding family carries a one-byte type tag, so values of
    different types never share bytes:
    - bytes, bytearray, memoryview: b"b" + raw bytes
    - str: b"s" + UTF-8
    - None, bool, int, float, list, dict with str keys: b"j" + canonical
      JSON (sorted keys, compact separators)

    Tuples, sets, subclasses of the JSON types (IntEnum and friends),
    non-str mapping keys and non-finite floats are rejected, since JSON
    would turn them into some other value's encoding.

    Args:
        element: Element to encode

    Returns:
        Byte representation of the element

    Raises:
        TypeError: If the element has no unambiguous encoding
    """
    if isinstance(element, (bytes, bytearray, memoryview)):
        return BYTES_TAG + bytes(element)
    if isinstance(element, str):
        return STR_TAG + element.encode("utf-8")
    _check_json_value(element)
    try:
        payload = json.dumps(
            element,
            ensure_ascii=False,
            separators=(",", ":"),
            sort_keys=True,
            allow_nan=False,
        )
    except ValueError as e:
        raise TypeError(f"Cannot encode element: {e}") from e
    return JSON_TAG + payload.encode("utf-8")


class TreeHasher:
    """
    Stateless hashing capability used by the tree and proof engines.

    Example:
        >>> hasher = TreeHasher("sha256")
        >>> left = hasher.hash_leaf(b"a")
        >>> right = hasher.hash_leaf(b"b")
        >>> parent = hasher.hash_pair(left, right)
    """

    def __init__(
        self,
        algorithm: str = "sha256",
        encoder: ElementEncoder = encode_element,
    ) -> None:
        name = algorithm.lower()
        if name not in hashlib.algorithms_available:
            raise UnsupportedAlgorithmError(f"Unknown hash algorithm: {algorithm}")
        if name.startswith("shake_"):
            raise UnsupportedAlgorithmError(
                f"Variable-length hash algorithm not supported: {algorithm}"
            )
        try:
            digest_size = hashlib.new(name).digest_size
        except ValueError as e:
            # Listed by hashlib but not provided by the linked OpenSSL
            raise UnsupportedAlgorithmError(f"Hash algorithm unavailable: {algorithm}") from e
        self._algorithm = name
        self._encoder = encoder
        self._digest_size = digest_size
        self._padding_digest = "00" * self._digest_size

    @property
    def algorithm(self) -> str:
        """Name of the underlying hash algorithm."""
        return self._algorithm

    @property
    def digest_size(self) -> int:
        """Digest length in bytes."""
        return self._digest_size

    @property
    def padding_digest(self) -> Digest:
        """Digest stored in unused leaf slots (all zero bytes)."""
        return self._padding_digest

    def hash_leaf(self, element: Any) -> Digest:
        """
        Compute the hash of a leaf node.

        Args:
            element: Leaf element, encoded with the hasher's encoder

        Returns:
            Hex-encoded leaf digest
        """
        hasher = hashlib.new(self._algorithm)
        hasher.update(LEAF_PREFIX)
        hasher.update(self._encoder(element))
        return hasher.hexdigest()

    def hash_pair(self, left: Digest, right: Digest) -> Digest:
        """
        Compute the hash of an internal node.

        Args:
            left: Digest of the left child (hex string)
            right: Digest of the right child (hex string)

        Returns:
            Hex-encoded parent digest
        """
        hasher = hashlib.new(self._algorithm)
        hasher.update(NODE_PREFIX)
        hasher.update(bytes.fromhex(left))
        hasher.update(bytes.fromhex(right))
        return hasher.hexdigest()

    def __repr__(self) -> str:
        return f"TreeHasher(algorithm={self._algorithm!r})"


@lru_cache
def get_default_hasher() -> TreeHasher:
    """Get the hasher for the configured HASH_ALGORITHM."""
    return TreeHasher(settings.HASH_ALGORITHM)


def hash_leaf(element: Any) -> Digest:
    """Hash a leaf element with the default hasher."""
    return get_default_hasher().hash_leaf(element)


def hash_pair(left: Digest, right: Digest) -> Digest:
    """Combine two child digests with the default hasher."""
    return get_default_hasher().hash_pair(left, right)
