"""
Fixed-size containers for keys, blocks and expanded keys.

All containers are plain tuples of EncryptedByte (or wrap one), checked for
size when they are built. A Block is laid out column-major like the AES
state: byte i sits in row i % 4, column i // 4.
"""
from __future__ import annotations

from typing import Iterator, Sequence, Tuple

from fhe_aes.encrypted_byte import EncryptedByte
from fhe_aes.errors import InputShapeError

BLOCK_SIZE = 16
KEY_SIZE = 16
NUM_ROUNDS = 10
EXPANDED_KEY_SIZE = BLOCK_SIZE * (NUM_ROUNDS + 1)  # 176

Block = Tuple[EncryptedByte, ...]
Key = Tuple[EncryptedByte, ...]
Word = Tuple[EncryptedByte, ...]


def _as_fixed(seq: Sequence[EncryptedByte], size: int, what: str) -> Tuple[EncryptedByte, ...]:
    if len(seq) != size:
        raise InputShapeError(f"{what} must be exactly {size} bytes, got {len(seq)}")
    out = tuple(seq)
    for b in out:
        if not isinstance(b, EncryptedByte):
            raise TypeError(f"{what} must contain EncryptedByte values, got {type(b).__name__}")
    return out


def as_block(seq: Sequence[EncryptedByte]) -> Block:
    return _as_fixed(seq, BLOCK_SIZE, "Block")


def as_key(seq: Sequence[EncryptedByte]) -> Key:
    return _as_fixed(seq, KEY_SIZE, "Key")


class ExpandedKey:
    """
    The 11 AES-128 round keys as 176 encrypted bytes.

    Read-only after construction, so one instance may be shared by any
    number of concurrent block transforms.
    """

    __slots__ = ("_bytes",)

    def __init__(self, data: Sequence[EncryptedByte]):
        self._bytes = _as_fixed(data, EXPANDED_KEY_SIZE, "Expanded key")

    def __len__(self) -> int:
        return EXPANDED_KEY_SIZE

    def __iter__(self) -> Iterator[EncryptedByte]:
        return iter(self._bytes)

    def __getitem__(self, item):
        return self._bytes[item]

    def __repr__(self) -> str:
        return f"ExpandedKey(rounds={NUM_ROUNDS + 1})"

    @property
    def backend(self):
        return self._bytes[0].backend

    def round_key(self, rnd: int) -> Block:
        if not 0 <= rnd <= NUM_ROUNDS:
            raise InputShapeError(f"Round index must be in 0..{NUM_ROUNDS}, got {rnd}")
        return self._bytes[rnd * BLOCK_SIZE:(rnd + 1) * BLOCK_SIZE]


def as_expanded_key(data) -> ExpandedKey:
    if isinstance(data, ExpandedKey):
        return data
    return ExpandedKey(data)
