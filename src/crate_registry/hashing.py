"""Stable content hashing for fingerprints of serialized state."""

import xxhash

# Persisted fingerprints are stored as signed 64-bit integers, so the hash
# is fixed at 32 bits.
HASH_SEED = 0


def content_hash(data: bytes) -> int:
    """Compute the XXH32 hash of ``data``.

    Args:
        data: Bytes to hash.

    Returns:
        Unsigned 32-bit hash value, stable across runs and machines.
    """
    return xxhash.xxh32_intdigest(data, seed=HASH_SEED)
