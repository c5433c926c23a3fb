"""
Homomorphic GF(2^8) multiplication by the MixColumns / InvMixColumns constants.

xtime (multiplication by 2) is a left shift followed by a reduction with the
AES polynomial 0x1B when the pre-shift high bit was set. The condition is
secret, so it is never branched on: the high bit is moved to bit 0, negated
into an all-zeros / all-ones mask and ANDed with the encrypted reduction
constant, and the result is XORed in unconditionally.

    xtime(x) = (x << 1) ^ (-(x >> 7) & Enc(0x1B))

Every other supported constant is a Horner composition of xtime and XOR over
the (public) bits of the constant, e.g. 14 = 0b1110 -> ((2x ^ x) * 2 ^ x) * 2.
"""
import threading
from typing import Tuple

from fhe_aes.encrypted_byte import ByteBackend, EncryptedByte

REDUCTION_POLY = 0x1B
SUPPORTED_CONSTANTS = (0x01, 0x02, 0x03, 0x09, 0x0B, 0x0D, 0x0E)


def gf_mul_int(a: int, b: int) -> int:
    """Cleartext GF(2^8) product, used for tables and cross-checks."""
    result = 0
    for _ in range(8):
        if b & 1:
            result ^= a
        high = a & 0x80
        a = (a << 1) & 0xFF
        if high:
            a ^= REDUCTION_POLY
        b >>= 1
    return result


class GFService:
    """
    GF(2^8) multiplication of encrypted bytes by small public constants.
    """

    def __init__(self, backend: ByteBackend):
        self.backend = backend
        self._reduction = None
        self._lock = threading.Lock()

    @property
    def reduction(self) -> EncryptedByte:
        # encrypted once, shared read-only by every worker
        with self._lock:
            if self._reduction is None:
                self._reduction = self.backend.encrypt(REDUCTION_POLY)
            return self._reduction

    def xtime(self, byte: EncryptedByte) -> EncryptedByte:
        mask = -(byte >> 7)
        return (byte << 1) ^ (mask & self.reduction)

    def mul2(self, byte: EncryptedByte) -> EncryptedByte:
        return self.xtime(byte)

    def mul3(self, byte: EncryptedByte) -> EncryptedByte:
        return self.xtime(byte) ^ byte

    def mul(self, byte: EncryptedByte, constant: int) -> EncryptedByte:
        if constant not in SUPPORTED_CONSTANTS:
            raise ValueError(
                f"Unsupported GF constant 0x{constant:02x}; "
                f"expected one of {[hex(c) for c in SUPPORTED_CONSTANTS]}"
            )
        result = byte
        for bit in bin(constant)[3:]:
            result = self.xtime(result)
            if bit == "1":
                result = result ^ byte
        return result

    def doublings(self, byte: EncryptedByte) -> Tuple[EncryptedByte, EncryptedByte, EncryptedByte, EncryptedByte]:
        """Return (x, 2x, 4x, 8x); any constant below 16 is an XOR of these."""
        x2 = self.xtime(byte)
        x4 = self.xtime(x2)
        x8 = self.xtime(x4)
        return byte, x2, x4, x8

    @staticmethod
    def combine(doublings: Tuple[EncryptedByte, ...], constant: int) -> EncryptedByte:
        """XOR together the doublings selected by the bits of constant (< 16)."""
        if not 0 < constant < 16:
            raise ValueError(f"combine() needs a constant in 1..15, got {constant}")
        terms = [doublings[i] for i in range(4) if constant >> i & 1]
        result = terms[0]
        for term in terms[1:]:
            result = result ^ term
        return result
