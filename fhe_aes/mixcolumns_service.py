"""
MixColumns / InvMixColumns over encrypted columns.

Each column c = (c0, c1, c2, c3) is multiplied by the fixed MDS matrix in
GF(2^8):

    forward              inverse
    [2 3 1 1]            [14 11 13  9]
    [1 2 3 1]            [ 9 14 11 13]
    [1 1 2 3]            [13  9 14 11]
    [3 1 1 2]            [11 13  9 14]

Products are evaluated with GFService; the doublings of each byte are computed
once and reused by every row that needs them (2x and 3x = 2x ^ x forward;
x, 2x, 4x, 8x inverse). The four columns are independent and go through the
worker pool.
"""
from typing import List, Sequence, Tuple

from fhe_aes.encrypted_byte import EncryptedByte
from fhe_aes.gf_service import GFService
from fhe_aes.worker_pool import WorkerPool, default_pool


MIX_MATRIX = (
    (0x02, 0x03, 0x01, 0x01),
    (0x01, 0x02, 0x03, 0x01),
    (0x01, 0x01, 0x02, 0x03),
    (0x03, 0x01, 0x01, 0x02),
)

INV_MIX_MATRIX = (
    (0x0E, 0x0B, 0x0D, 0x09),
    (0x09, 0x0E, 0x0B, 0x0D),
    (0x0D, 0x09, 0x0E, 0x0B),
    (0x0B, 0x0D, 0x09, 0x0E),
)


def _xor_all(terms: List[EncryptedByte]) -> EncryptedByte:
    acc = terms[0]
    for t in terms[1:]:
        acc = acc ^ t
    return acc


def _columns(state: Sequence[EncryptedByte]) -> List[Tuple[EncryptedByte, ...]]:
    return [tuple(state[4 * c:4 * c + 4]) for c in range(4)]


class AESFHEMixColumns:
    """
    Column mixing with GF(2^8) products evaluated homomorphically.
    """

    def __init__(self, gf_svc: GFService, pool: WorkerPool = None):
        self.gf_svc = gf_svc
        self.pool = pool or default_pool()

    def mix_column(self, column: Sequence[EncryptedByte]) -> Tuple[EncryptedByte, ...]:
        doubled = [self.gf_svc.mul2(b) for b in column]
        multiples = {
            0x01: list(column),
            0x02: doubled,
            0x03: [d ^ b for d, b in zip(doubled, column)],
        }
        return tuple(
            _xor_all([multiples[coeff][j] for j, coeff in enumerate(row)])
            for row in MIX_MATRIX
        )

    def inv_mix_column(self, column: Sequence[EncryptedByte]) -> Tuple[EncryptedByte, ...]:
        chains = [self.gf_svc.doublings(b) for b in column]
        # products[j][coeff] = coeff * column[j]
        products = [
            {coeff: GFService.combine(chain, coeff) for coeff in (0x09, 0x0B, 0x0D, 0x0E)}
            for chain in chains
        ]
        return tuple(
            _xor_all([products[j][coeff] for j, coeff in enumerate(row)])
            for row in INV_MIX_MATRIX
        )

    def mix_columns(self, state: Sequence[EncryptedByte]) -> Tuple[EncryptedByte, ...]:
        mixed = self.pool.map(self.mix_column, _columns(state))
        return tuple(b for column in mixed for b in column)

    def inv_mix_columns(self, state: Sequence[EncryptedByte]) -> Tuple[EncryptedByte, ...]:
        mixed = self.pool.map(self.inv_mix_column, _columns(state))
        return tuple(b for column in mixed for b in column)
