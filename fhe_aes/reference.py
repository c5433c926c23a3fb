"""
Cleartext AES-128 reference used to verify homomorphic results.

Block encryption comes from PyCryptodome; the key schedule, which PyCryptodome
does not expose, is computed here from the same S-box the homomorphic side
uses.
"""
from typing import List

from Crypto.Cipher import AES

from fhe_aes.key_scheduling import RCON
from fhe_aes.sbox.sbox_service import AES_SBOX
from fhe_aes.utils import increment_counter, xor_counter


def aes128_encrypt(key: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt a single 16-byte block using AES-128 ECB.
    """
    if len(key) != 16:
        raise ValueError(f"Key must be 16 bytes, got {len(key)}")
    if len(plaintext) != 16:
        raise ValueError(f"Plaintext must be 16 bytes, got {len(plaintext)}")
    return AES.new(key, AES.MODE_ECB).encrypt(plaintext)


def aes128_decrypt(key: bytes, ciphertext: bytes) -> bytes:
    if len(key) != 16:
        raise ValueError(f"Key must be 16 bytes, got {len(key)}")
    if len(ciphertext) != 16:
        raise ValueError(f"Ciphertext must be 16 bytes, got {len(ciphertext)}")
    return AES.new(key, AES.MODE_ECB).decrypt(ciphertext)


def expand_key(key: bytes) -> bytes:
    """
    Standard AES-128 key schedule (44 words) returning the 176 round-key bytes.
    """
    if len(key) != 16:
        raise ValueError("Key must be exactly 16 bytes")
    words: List[List[int]] = [list(key[i * 4:(i + 1) * 4]) for i in range(4)]
    for i in range(4, 44):
        temp = words[i - 1].copy()
        if i % 4 == 0:
            temp = temp[1:] + temp[:1]
            temp = [AES_SBOX[b] for b in temp]
            temp[0] ^= RCON[i // 4 - 1]
        words.append([a ^ b for a, b in zip(words[i - 4], temp)])
    return bytes(b for word in words for b in word)


def counter_blocks(iv: bytes, count: int, mode: str = "increment") -> List[bytes]:
    if mode == "increment":
        return [increment_counter(iv, i) for i in range(count)]
    if mode == "xor":
        return [xor_counter(iv, i) for i in range(count)]
    raise ValueError(f"Unknown counter mode: {mode}")


def keystream(key: bytes, iv: bytes, count: int, mode: str = "increment") -> List[bytes]:
    """E_K(counter_i) for i = 0..count-1."""
    return [aes128_encrypt(key, block) for block in counter_blocks(iv, count, mode)]
