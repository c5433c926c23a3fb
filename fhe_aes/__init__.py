"""
Homomorphic AES-128 over encrypted bytes.

The CKKS backend (fhe_aes.ckks_backend) needs desilofhe and is imported
explicitly; everything exported here runs on any ByteBackend.
"""
from fhe_aes.block_cipher import AESFHECipher, decrypt_block, encrypt_block
from fhe_aes.encrypted_byte import ByteBackend, EncryptedByte
from fhe_aes.errors import AESFHEError, BackendMismatchError, FHEEvaluationError, InputShapeError
from fhe_aes.key_scheduling import KeyScheduler, key_expansion_fhe
from fhe_aes.orchestrator import BlockOrchestrator, CounterMode
from fhe_aes.simulation import OperationCounter, SimulatedByteBackend
from fhe_aes.state import ExpandedKey
from fhe_aes.worker_pool import WorkerPool

__all__ = [
    "AESFHECipher",
    "AESFHEError",
    "BackendMismatchError",
    "BlockOrchestrator",
    "ByteBackend",
    "CounterMode",
    "EncryptedByte",
    "ExpandedKey",
    "FHEEvaluationError",
    "InputShapeError",
    "KeyScheduler",
    "OperationCounter",
    "SimulatedByteBackend",
    "WorkerPool",
    "decrypt_block",
    "encrypt_block",
    "key_expansion_fhe",
]
