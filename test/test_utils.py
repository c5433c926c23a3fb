"""
    1. bytes_to_state <-> state_to_bytes are inverses of each other.
    2. zeta_encode <-> zeta_decode restore the original integers.
    3. hex parsing and 128-bit counter arithmetic.
"""

import pytest
import numpy as np
from state_helpers import bytes_to_state, state_to_bytes
from fhe_aes.utils import (
    zeta_encode,
    zeta_decode,
    hex_to_bytes,
    index_bytes,
    increment_counter,
    xor_counter,
)


def test_bytes_state_roundtrip():
    # 16-byte block of incremental values
    block = bytes(range(16))
    state = bytes_to_state(block)
    # state should be 4x4
    assert state.shape == (4, 4)
    # column-major: byte 1 is row 1, column 0
    assert state[1, 0] == 1
    assert state[0, 1] == 4
    out = state_to_bytes(state)
    assert out == block


def test_bytes_state_invalid_length():
    with pytest.raises(ValueError):
        bytes_to_state(b"short")
    with pytest.raises(ValueError):
        state_to_bytes(np.zeros((3, 3), dtype=np.uint8))


def test_zeta_encode_decode():
    arr = np.arange(16, dtype=np.int64)
    z = zeta_encode(arr, modulus=16)
    decoded = zeta_decode(z, modulus=16)
    assert np.array_equal(decoded, arr)

    rng = np.random.default_rng(123)
    arr2 = rng.integers(0, 256, size=100, dtype=np.int64)
    dec2 = zeta_decode(zeta_encode(arr2))
    assert np.array_equal(dec2, arr2)


def test_zeta_decode_ignores_magnitude_and_small_noise():
    arr = np.arange(256, dtype=np.int64)
    z = zeta_encode(arr) * 0.93 + 1e-4
    assert np.array_equal(zeta_decode(z), arr)


def test_hex_to_bytes():
    assert hex_to_bytes("000102030405060708090a0b0c0d0e0f") == bytes(range(16))
    assert hex_to_bytes("0x" + "FF" * 16) == b"\xff" * 16
    with pytest.raises(ValueError):
        hex_to_bytes("00" * 15)
    with pytest.raises(ValueError):
        hex_to_bytes("zz" * 16)


def test_counter_helpers():
    assert index_bytes(1) == b"\x00" * 15 + b"\x01"
    assert increment_counter(b"\x00" * 15 + b"\xff") == b"\x00" * 14 + b"\x01\x00"
    # wraps at 2^128
    assert increment_counter(b"\xff" * 16) == b"\x00" * 16
    assert xor_counter(b"\x0f" * 16, 0x0102) == b"\x0f" * 14 + b"\x0e\x0d"
