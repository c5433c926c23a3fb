"""
Shared helpers:
 - zeta (roots of unity) encoding / decoding
 - hex parsing and counter arithmetic for the cleartext side
"""
from typing import Sequence

import numpy as np

BLOCK_BYTES = 16


def zeta_encode(arr: Sequence[int], modulus: int = 256) -> np.ndarray:
    """
    Encode integers as powers of zeta = exp(-2j*pi/modulus).
    """
    arr_mod = np.asarray(arr, dtype=np.int64) % modulus
    zeta = np.exp(-2j * np.pi / modulus)
    return zeta ** arr_mod


def zeta_decode(z_arr: np.ndarray, modulus: int = 256) -> np.ndarray:
    """
    Decode zeta^k values back to k by rounding the phase.
    The magnitude is ignored, so slightly shrunk or grown CKKS outputs decode fine.
    """
    angles = np.angle(np.asarray(z_arr))
    idx = (-angles * modulus) / (2 * np.pi)
    return np.mod(np.rint(idx), modulus).astype(np.int64)


def hex_to_bytes(text: str, length: int = BLOCK_BYTES) -> bytes:
    """
    Parse a hex string of exactly `length` bytes (2*length hex chars).
    """
    cleaned = text.strip().lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    if len(cleaned) != 2 * length:
        raise ValueError(f"Expected {2 * length} hex chars, got {len(cleaned)}")
    try:
        return bytes.fromhex(cleaned)
    except ValueError as e:
        raise ValueError(f"Invalid hex string: {text!r}") from e


def index_bytes(index: int) -> bytes:
    """Big-endian 16-byte encoding of a block index (mod 2^128)."""
    return (index % (1 << 128)).to_bytes(BLOCK_BYTES, "big")


def increment_counter(counter: bytes, amount: int = 1) -> bytes:
    """Add `amount` to a 128-bit big-endian counter, wrapping at 2^128."""
    value = int.from_bytes(counter, "big") + amount
    return index_bytes(value)


def xor_counter(iv: bytes, index: int) -> bytes:
    return bytes(a ^ b for a, b in zip(iv, index_bytes(index)))
