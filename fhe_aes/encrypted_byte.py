"""
Opaque encrypted byte and the backend contract it is evaluated against.

EncryptedByte is the only value type the AES core manipulates. It carries a
reference to the backend that produced it plus that backend's ciphertext, and
forwards every operator to the backend:

    a ^ b, a & b, a | b   bitwise ops between two encrypted bytes
    ~a                    bitwise complement
    -a                    two's-complement negation (mod 256)
    a << n, a >> n        logical shifts by a public amount (0..7)
    a.lookup(table)       oblivious evaluation of a public 256-entry table

Mixing an EncryptedByte with a cleartext int is refused (TypeError): public
constants have to be encrypted through ByteBackend.encrypt first.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence, Tuple

from fhe_aes.errors import BackendMismatchError, InputShapeError

TABLE_SIZE = 256


def check_table(table: Sequence[int]) -> Tuple[int, ...]:
    """
    Validate a public lookup table: exactly 256 entries, each a byte value.
    """
    if len(table) != TABLE_SIZE:
        raise InputShapeError(f"Lookup table must have {TABLE_SIZE} entries, got {len(table)}")
    out = tuple(int(v) for v in table)
    if any(v < 0 or v > 0xFF for v in out):
        raise InputShapeError("Lookup table entries must be in 0..255")
    return out


def check_shift(amount: int) -> int:
    if not 0 <= amount <= 7:
        raise InputShapeError(f"Shift amount must be in 0..7, got {amount}")
    return amount


class ByteBackend(ABC):
    """
    Homomorphic primitive set over encrypted bytes.

    The raw primitives (xor, and_, ...) take and return backend ciphertexts;
    EncryptedByte wraps them. Only encrypt/decrypt ever see a cleartext byte.
    """

    name: str = "backend"

    # --- client side -----------------------------------------------------
    @abstractmethod
    def _encrypt_value(self, value: int) -> Any:
        ...

    @abstractmethod
    def _decrypt_value(self, ct: Any) -> int:
        ...

    def encrypt(self, value: int) -> "EncryptedByte":
        if not 0 <= int(value) <= 0xFF:
            raise InputShapeError(f"Byte value out of range: {value}")
        return EncryptedByte(self, self._encrypt_value(int(value)))

    def decrypt(self, byte: "EncryptedByte") -> int:
        self._check_owner(byte)
        return self._decrypt_value(byte.ciphertext)

    def encrypt_bytes(self, data: Iterable[int]) -> Tuple["EncryptedByte", ...]:
        return tuple(self.encrypt(b) for b in data)

    def decrypt_bytes(self, seq: Iterable["EncryptedByte"]) -> bytes:
        return bytes(self.decrypt(b) for b in seq)

    # --- homomorphic primitives ------------------------------------------
    @abstractmethod
    def xor(self, a: Any, b: Any) -> Any:
        ...

    @abstractmethod
    def and_(self, a: Any, b: Any) -> Any:
        ...

    @abstractmethod
    def or_(self, a: Any, b: Any) -> Any:
        ...

    @abstractmethod
    def not_(self, a: Any) -> Any:
        ...

    @abstractmethod
    def neg(self, a: Any) -> Any:
        ...

    @abstractmethod
    def shl(self, a: Any, amount: int) -> Any:
        ...

    @abstractmethod
    def shr(self, a: Any, amount: int) -> Any:
        ...

    @abstractmethod
    def lookup(self, a: Any, table: Tuple[int, ...]) -> Any:
        ...

    def _check_owner(self, byte: "EncryptedByte") -> None:
        if not isinstance(byte, EncryptedByte):
            raise TypeError(f"Expected EncryptedByte, got {type(byte).__name__}")
        if byte.backend is not self:
            raise BackendMismatchError("EncryptedByte belongs to a different backend")


class EncryptedByte:
    """Immutable handle on one encrypted byte."""

    __slots__ = ("_backend", "_ct")

    def __init__(self, backend: ByteBackend, ciphertext: Any):
        object.__setattr__(self, "_backend", backend)
        object.__setattr__(self, "_ct", ciphertext)

    def __setattr__(self, key, value):
        raise AttributeError("EncryptedByte is immutable")

    @property
    def backend(self) -> ByteBackend:
        return self._backend

    @property
    def ciphertext(self) -> Any:
        return self._ct

    def __repr__(self) -> str:
        return f"EncryptedByte(backend={self._backend.name})"

    def _peer(self, other: Any) -> Any:
        if other._backend is not self._backend:
            raise BackendMismatchError("Operands belong to different backends")
        return other._ct

    def _wrap(self, ct: Any) -> "EncryptedByte":
        return EncryptedByte(self._backend, ct)

    def __xor__(self, other: Any) -> "EncryptedByte":
        if not isinstance(other, EncryptedByte):
            return NotImplemented
        return self._wrap(self._backend.xor(self._ct, self._peer(other)))

    def __and__(self, other: Any) -> "EncryptedByte":
        if not isinstance(other, EncryptedByte):
            return NotImplemented
        return self._wrap(self._backend.and_(self._ct, self._peer(other)))

    def __or__(self, other: Any) -> "EncryptedByte":
        if not isinstance(other, EncryptedByte):
            return NotImplemented
        return self._wrap(self._backend.or_(self._ct, self._peer(other)))

    def __invert__(self) -> "EncryptedByte":
        return self._wrap(self._backend.not_(self._ct))

    def __neg__(self) -> "EncryptedByte":
        return self._wrap(self._backend.neg(self._ct))

    def __lshift__(self, amount: int) -> "EncryptedByte":
        if isinstance(amount, EncryptedByte):
            return NotImplemented
        if check_shift(amount) == 0:
            return self
        return self._wrap(self._backend.shl(self._ct, amount))

    def __rshift__(self, amount: int) -> "EncryptedByte":
        if isinstance(amount, EncryptedByte):
            return NotImplemented
        if check_shift(amount) == 0:
            return self
        return self._wrap(self._backend.shr(self._ct, amount))

    def lookup(self, table: Sequence[int]) -> "EncryptedByte":
        """Return Enc(table[x]) for this Enc(x) without revealing x."""
        return self._wrap(self._backend.lookup(self._ct, check_table(table)))
