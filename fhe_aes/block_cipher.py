"""
AES-128 block transform over encrypted state.

encrypt:  ARK(0) | 9 x [SubBytes, ShiftRows, MixColumns, ARK(r)] | SubBytes, ShiftRows, ARK(10)
decrypt:  ARK(10) | r = 9..1 x [InvShiftRows, InvSubBytes, ARK(r), InvMixColumns]
          | InvShiftRows, InvSubBytes, ARK(0)

Each call works on its own copy of the state (tuples of handles), the
expanded key is only read, so any number of blocks may run concurrently.
Rounds are strictly sequential; inside a round the 16 byte operations and the
4 columns fan out over the worker pool.
"""
import logging
from typing import Sequence

from fhe_aes.encrypted_byte import ByteBackend, EncryptedByte
from fhe_aes.errors import BackendMismatchError
from fhe_aes.gf_service import GFService
from fhe_aes.mixcolumns_service import AESFHEMixColumns
from fhe_aes.sbox.sbox_service import SBoxService
from fhe_aes.shiftrows_service import AESFHEShiftRows
from fhe_aes.state import NUM_ROUNDS, Block, ExpandedKey, as_block, as_expanded_key
from fhe_aes.worker_pool import WorkerPool, default_pool

logger = logging.getLogger(__name__)


class AESFHECipher:
    """
    Homomorphic AES-128 rounds bound to one byte backend.
    """

    def __init__(self, backend: ByteBackend, pool: WorkerPool = None):
        self.backend = backend
        self.pool = pool or default_pool()
        self.sbox_svc = SBoxService(self.pool)
        self.gf_svc = GFService(backend)
        self.shift_svc = AESFHEShiftRows()
        self.mix_svc = AESFHEMixColumns(self.gf_svc, self.pool)

    # --- round steps -----------------------------------------------------
    def add_round_key(self, state: Sequence[EncryptedByte], round_key: Sequence[EncryptedByte]) -> Block:
        return tuple(self.pool.map(lambda pair: pair[0] ^ pair[1], zip(state, round_key)))

    def sub_bytes(self, state: Sequence[EncryptedByte]) -> Block:
        return self.sbox_svc.sub_bytes(state)

    def inv_sub_bytes(self, state: Sequence[EncryptedByte]) -> Block:
        return self.sbox_svc.inv_sub_bytes(state)

    def shift_rows(self, state: Sequence[EncryptedByte]) -> Block:
        return self.shift_svc.shift_rows(state)

    def inv_shift_rows(self, state: Sequence[EncryptedByte]) -> Block:
        return self.shift_svc.inverse_shift_rows(state)

    def mix_columns(self, state: Sequence[EncryptedByte]) -> Block:
        return self.mix_svc.mix_columns(state)

    def inv_mix_columns(self, state: Sequence[EncryptedByte]) -> Block:
        return self.mix_svc.inv_mix_columns(state)

    # --- full block ------------------------------------------------------
    def _check_inputs(self, block, expanded_key):
        block = as_block(block)
        expanded_key = as_expanded_key(expanded_key)
        for b in block + tuple(expanded_key):
            if b.backend is not self.backend:
                raise BackendMismatchError("Block and expanded key must come from the cipher's backend")
        return block, expanded_key

    def encrypt_block(self, block: Sequence[EncryptedByte], expanded_key: ExpandedKey) -> Block:
        state, expanded_key = self._check_inputs(block, expanded_key)

        state = self.add_round_key(state, expanded_key.round_key(0))
        for rnd in range(1, NUM_ROUNDS):
            state = self.sub_bytes(state)
            state = self.shift_rows(state)
            state = self.mix_columns(state)
            state = self.add_round_key(state, expanded_key.round_key(rnd))
            logger.debug("encrypt: round %d done", rnd)

        state = self.sub_bytes(state)
        state = self.shift_rows(state)
        return self.add_round_key(state, expanded_key.round_key(NUM_ROUNDS))

    def decrypt_block(self, block: Sequence[EncryptedByte], expanded_key: ExpandedKey) -> Block:
        state, expanded_key = self._check_inputs(block, expanded_key)

        state = self.add_round_key(state, expanded_key.round_key(NUM_ROUNDS))
        for rnd in range(NUM_ROUNDS - 1, 0, -1):
            state = self.inv_shift_rows(state)
            state = self.inv_sub_bytes(state)
            # InvMixColumns after AddRoundKey: the two do not commute
            state = self.add_round_key(state, expanded_key.round_key(rnd))
            state = self.inv_mix_columns(state)
            logger.debug("decrypt: round %d done", rnd)

        state = self.inv_shift_rows(state)
        state = self.inv_sub_bytes(state)
        return self.add_round_key(state, expanded_key.round_key(0))


def encrypt_block(block: Sequence[EncryptedByte], expanded_key: ExpandedKey, pool: WorkerPool = None) -> Block:
    block = as_block(block)
    return AESFHECipher(block[0].backend, pool).encrypt_block(block, expanded_key)


def decrypt_block(block: Sequence[EncryptedByte], expanded_key: ExpandedKey, pool: WorkerPool = None) -> Block:
    block = as_block(block)
    return AESFHECipher(block[0].backend, pool).decrypt_block(block, expanded_key)
