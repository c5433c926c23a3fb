# test/test_shiftrows.py

import numpy as np

from fhe_aes.shiftrows_service import INV_SHIFT_ROWS_PERM, SHIFT_ROWS_PERM, AESFHEShiftRows
from state_helpers import bytes_to_state, state_to_bytes


def aes_shiftrows_plain(block: bytes) -> bytes:
    """
    Plain column-major ShiftRows: view the block as a 4x4 matrix and roll each row r by -r.
    """
    mat = bytes_to_state(block).copy()
    for r in range(4):
        mat[r] = np.roll(mat[r], -r)
    return state_to_bytes(mat)


def test_shift_and_inverse_shiftrows(backend):
    transformer = AESFHEShiftRows()
    rng = np.random.default_rng(0)
    block = bytes(rng.integers(0, 256, size=16, dtype=np.uint8))

    state = backend.encrypt_bytes(block)
    backend.counter.reset()
    shifted = transformer.shift_rows(state)
    assert backend.decrypt_bytes(shifted) == aes_shiftrows_plain(block)
    assert backend.decrypt_bytes(transformer.inverse_shift_rows(shifted)) == block
    # pure data movement
    assert backend.counter.total == 0


def test_permutations():
    assert sorted(SHIFT_ROWS_PERM) == list(range(16))
    assert SHIFT_ROWS_PERM[1] == 5
    assert SHIFT_ROWS_PERM[7] == 3
    assert INV_SHIFT_ROWS_PERM[1] == 13
    assert all(INV_SHIFT_ROWS_PERM[SHIFT_ROWS_PERM[i]] == i for i in range(16))
