"""
AES-128 key expansion over encrypted bytes.

Words 0..3 are the key itself. For every following word i (4..43):

    temp = SubWord(RotWord(w[i-1])) ^ Rcon[i/4]   if i % 4 == 0
    temp = w[i-1]                                  otherwise
    w[i] = w[i-4] ^ temp

RotWord is a reordering of handles. SubWord runs the 4 byte substitutions in
parallel and the 4 XORs of each new word are parallel as well; the chain of
words itself is sequential. Round constants are public but are encrypted once
before being XORed into secret key material.
"""
import logging
import threading
import time
from typing import List, Sequence, Tuple

from fhe_aes.encrypted_byte import ByteBackend, EncryptedByte
from fhe_aes.errors import BackendMismatchError
from fhe_aes.sbox.sbox_service import SBoxService
from fhe_aes.state import EXPANDED_KEY_SIZE, ExpandedKey, Word, as_key
from fhe_aes.worker_pool import WorkerPool, default_pool

logger = logging.getLogger(__name__)

RCON = (0x01, 0x02, 0x04, 0x08, 0x10, 0x20, 0x40, 0x80, 0x1B, 0x36)
NUM_WORDS = EXPANDED_KEY_SIZE // 4  # 44


def rot_word(word: Sequence[EncryptedByte]) -> Word:
    return tuple(word[1:]) + (word[0],)


class KeyScheduler:
    """
    Expands an encrypted 16-byte key into 11 encrypted round keys.
    """

    def __init__(self, backend: ByteBackend, pool: WorkerPool = None, sbox_svc: SBoxService = None):
        self.backend = backend
        self.pool = pool or default_pool()
        self.sbox_svc = sbox_svc or SBoxService(self.pool)
        self._rcon = None
        self._lock = threading.Lock()

    @property
    def encrypted_rcon(self) -> Tuple[EncryptedByte, ...]:
        with self._lock:
            if self._rcon is None:
                self._rcon = self.backend.encrypt_bytes(RCON)
            return self._rcon

    def _xor_words(self, a: Word, b: Word) -> Word:
        return tuple(self.pool.map(lambda pair: pair[0] ^ pair[1], zip(a, b)))

    def expand(self, key: Sequence[EncryptedByte]) -> ExpandedKey:
        key = as_key(key)
        for b in key:
            if b.backend is not self.backend:
                raise BackendMismatchError("Key bytes were not produced by this scheduler's backend")
        start = time.perf_counter()

        words: List[Word] = [key[4 * i:4 * i + 4] for i in range(4)]
        for i in range(4, NUM_WORDS):
            temp = words[i - 1]
            if i % 4 == 0:
                temp = self.sbox_svc.sub_word(rot_word(temp))
                temp = (temp[0] ^ self.encrypted_rcon[i // 4 - 1],) + temp[1:]
            words.append(self._xor_words(words[i - 4], temp))
            logger.debug("key schedule: word %d/%d", i, NUM_WORDS - 1)

        logger.info("key expansion finished in %.3fs", time.perf_counter() - start)
        return ExpandedKey([b for word in words for b in word])


def key_expansion_fhe(key: Sequence[EncryptedByte], pool: WorkerPool = None) -> ExpandedKey:
    """Expand an encrypted AES-128 key; the backend is taken from the key bytes."""
    key = as_key(key)
    return KeyScheduler(key[0].backend, pool).expand(key)
