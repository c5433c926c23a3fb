from typing import Sequence, Tuple

from fhe_aes.encrypted_byte import EncryptedByte
from fhe_aes.state import BLOCK_SIZE


def _row_rotation(direction: int) -> Tuple[int, ...]:
    # column-major state: byte i is row i % 4, column i // 4
    perm = []
    for i in range(BLOCK_SIZE):
        row, col = i % 4, i // 4
        perm.append(row + 4 * ((col + direction * row) % 4))
    return tuple(perm)


# out[i] = state[SHIFT_ROWS_PERM[i]]
SHIFT_ROWS_PERM = _row_rotation(+1)
INV_SHIFT_ROWS_PERM = _row_rotation(-1)


class AESFHEShiftRows:
    """
    ShiftRows (and inverse) on a column-major 16-byte encrypted state.

    Row r is rotated left (inverse: right) by r positions. This is pure data
    movement: no homomorphic operation is evaluated and nothing depends on the
    byte values.
    """

    def shift_rows(self, state: Sequence[EncryptedByte]) -> Tuple[EncryptedByte, ...]:
        return tuple(state[j] for j in SHIFT_ROWS_PERM)

    def inverse_shift_rows(self, state: Sequence[EncryptedByte]) -> Tuple[EncryptedByte, ...]:
        return tuple(state[j] for j in INV_SHIFT_ROWS_PERM)
