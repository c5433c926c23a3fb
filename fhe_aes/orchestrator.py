"""
Block orchestrator: N keystream blocks from one encrypted IV.

Block i encrypts the counter block derived from the IV and the public index i,
either IV + i (128-bit big-endian, "increment") or IV ^ i ("xor"). The IV
stays encrypted, so the increment is a branch-free ripple-carry adder over
encrypted bytes. Counter blocks are independent: they are formed and
encrypted in parallel with one shared, read-only expanded key.

Failures are not isolated per block: the first failing block is logged with
its index and its exception propagates to the caller.
"""
import enum
import logging
import time
from typing import List, Optional, Sequence, Tuple

from fhe_aes.block_cipher import AESFHECipher
from fhe_aes.encrypted_byte import EncryptedByte
from fhe_aes.state import BLOCK_SIZE, Block, ExpandedKey, as_block, as_expanded_key
from fhe_aes.utils import index_bytes

logger = logging.getLogger(__name__)


class CounterMode(str, enum.Enum):
    INCREMENT = "increment"
    XOR = "xor"


def add_bytes(a: EncryptedByte, b: EncryptedByte) -> Tuple[EncryptedByte, EncryptedByte]:
    """
    Return (Enc((a + b) mod 256), Enc(carry)) with carry in {0, 1}.

    Eight rounds of sum = x ^ y, carry = (x & y) << 1 settle any 8-bit carry
    chain. The bit shifted out of the top in each round is collected as the
    carry out; at most one such bit can ever be set since a + b < 512.
    """
    x, y = a, b
    carry_out = None
    for _ in range(8):
        c = x & y
        top = c >> 7
        carry_out = top if carry_out is None else carry_out | top
        x = x ^ y
        y = c << 1
    return x, carry_out


class BlockOrchestrator:
    """
    Drives AESFHECipher over a run of counter blocks.
    """

    def __init__(self, cipher: AESFHECipher, expanded_key: ExpandedKey,
                 mode: CounterMode = CounterMode.INCREMENT):
        self.cipher = cipher
        self.backend = cipher.backend
        self.pool = cipher.pool
        self.expanded_key = as_expanded_key(expanded_key)
        self.mode = CounterMode(mode)

    # --- counter blocks --------------------------------------------------
    def _increment(self, iv: Block, index: int) -> Block:
        offset = self.backend.encrypt_bytes(index_bytes(index))
        out: List[Optional[EncryptedByte]] = [None] * BLOCK_SIZE
        carry = None
        # least significant byte is the last one
        for pos in range(BLOCK_SIZE - 1, -1, -1):
            total, c1 = add_bytes(iv[pos], offset[pos])
            if carry is not None:
                total, c2 = add_bytes(total, carry)
                c1 = c1 | c2
            out[pos] = total
            carry = c1
        return tuple(out)

    def _xor(self, iv: Block, index: int) -> Block:
        offset = self.backend.encrypt_bytes(index_bytes(index))
        return tuple(a ^ b for a, b in zip(iv, offset))

    def counter_block(self, iv: Sequence[EncryptedByte], index: int) -> Block:
        iv = as_block(iv)
        if index < 0:
            raise ValueError(f"Block index must be non-negative, got {index}")
        if index == 0:
            return iv
        if self.mode is CounterMode.INCREMENT:
            return self._increment(iv, index)
        return self._xor(iv, index)

    # --- keystream -------------------------------------------------------
    def _run_block(self, job: Tuple[Block, int]) -> Block:
        iv, index = job
        start = time.perf_counter()
        try:
            counter = self.counter_block(iv, index)
            out = self.cipher.encrypt_block(counter, self.expanded_key)
        except Exception:
            logger.error("block %d failed", index)
            raise
        logger.info("block %d encrypted in %.3fs", index, time.perf_counter() - start)
        return out

    def generate(self, iv: Sequence[EncryptedByte], count: int) -> List[Block]:
        """Encrypt counter blocks 0..count-1 in parallel, in index order."""
        iv = as_block(iv)
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        start = time.perf_counter()
        blocks = self.pool.map(self._run_block, [(iv, i) for i in range(count)])
        logger.info("%d block(s) encrypted in %.3fs", count, time.perf_counter() - start)
        return blocks

    keystream = generate

    def decrypt_blocks(self, blocks: Sequence[Sequence[EncryptedByte]]) -> List[Block]:
        """Run decrypt_block over every block in parallel."""
        start = time.perf_counter()
        out = self.pool.map(lambda b: self.cipher.decrypt_block(b, self.expanded_key), blocks)
        logger.info("%d block(s) decrypted in %.3fs", len(out), time.perf_counter() - start)
        return out
