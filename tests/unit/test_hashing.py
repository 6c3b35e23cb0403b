"""Tests for content hashing."""

import pytest

from crate_registry.hashing import content_hash


class TestContentHash:
    """Test suite for content_hash."""

    def test_known_values(self) -> None:
        """Test against published XXH32 (seed 0) reference values."""
        assert content_hash(b"") == 0x02CC5D05
        assert content_hash(b"abc") == 0x32D153FF

    def test_deterministic(self) -> None:
        """Test that hashing the same bytes twice gives the same value."""
        data = b'[[package]]\nname = "serde"\nversion = "1.0.130"\n'
        assert content_hash(data) == content_hash(bytes(data))

    def test_different_input_different_hash(self) -> None:
        """Test that a small change alters the hash."""
        assert content_hash(b"serde 1.0.130") != content_hash(b"serde 1.0.131")

    @pytest.mark.parametrize("data", [b"", b"\x00", b"x" * 1000, bytes(range(256))])
    def test_fits_in_32_bits(self, data: bytes) -> None:
        """Test that every hash is an unsigned 32-bit value."""
        value = content_hash(data)
        assert 0 <= value < 2**32
