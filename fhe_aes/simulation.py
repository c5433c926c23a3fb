"""
Simulated byte backend.

Evaluates every homomorphic primitive in the clear on an opaque ciphertext
object and counts it, so the full AES circuit can be dry-run and its cost
(number of XOR / AND / table evaluations per block) measured without an FHE
engine. The count is exactly the number of primitives the CKKS backend would
evaluate for the same circuit.
"""
from __future__ import annotations

import threading
from typing import Dict, Tuple

from fhe_aes.encrypted_byte import ByteBackend


class OperationCounter:
    """
    Thread-safe tally of homomorphic primitives, broken down by name.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {}

    def add(self, operation: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[operation] = self._counts.get(operation, 0) + amount

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def by_operation(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def __getitem__(self, operation: str) -> int:
        with self._lock:
            return self._counts.get(operation, 0)

    def summary(self) -> str:
        counts = self.by_operation()
        if not counts:
            return "no homomorphic operations"
        parts = [f"{name}={counts[name]}" for name in sorted(counts)]
        return f"{sum(counts.values())} ops ({', '.join(parts)})"

    def __repr__(self) -> str:
        return f"OperationCounter(total={self.total})"


class SimulatedCiphertext:
    __slots__ = ("_value",)

    def __init__(self, value: int):
        self._value = value & 0xFF

    def __repr__(self) -> str:
        return "SimulatedCiphertext(<hidden>)"


class SimulatedByteBackend(ByteBackend):
    """ByteBackend that keeps values in the clear and counts operations."""

    name = "simulate"

    def __init__(self, counter: OperationCounter = None):
        self.counter = counter or OperationCounter()

    def _encrypt_value(self, value: int) -> SimulatedCiphertext:
        self.counter.add("encrypt")
        return SimulatedCiphertext(value)

    def _decrypt_value(self, ct: SimulatedCiphertext) -> int:
        return ct._value

    def _op(self, name: str, value: int) -> SimulatedCiphertext:
        self.counter.add(name)
        return SimulatedCiphertext(value)

    def xor(self, a, b):
        return self._op("xor", a._value ^ b._value)

    def and_(self, a, b):
        return self._op("and", a._value & b._value)

    def or_(self, a, b):
        return self._op("or", a._value | b._value)

    def not_(self, a):
        return self._op("not", ~a._value)

    def neg(self, a):
        return self._op("neg", -a._value)

    def shl(self, a, amount: int):
        return self._op("shl", a._value << amount)

    def shr(self, a, amount: int):
        return self._op("shr", a._value >> amount)

    def lookup(self, a, table: Tuple[int, ...]):
        return self._op("lookup", table[a._value])
