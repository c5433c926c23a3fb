"""
ByteBackend over desilofhe CKKS.

Every slot of a ciphertext holds zeta_256^x for the same byte x; decryption
reads slot 0 and rounds the phase back to 0..255.
"""
import logging
from typing import Any, Optional, Tuple

import numpy as np

from fhe_aes.bitwise_service import BitwiseService, CKKSConfig, EngineWrapper, ZetaEncoder
from fhe_aes.encrypted_byte import ByteBackend
from fhe_aes.errors import FHEEvaluationError
from fhe_aes.generator.generate_lut_coeffs import standard_tables

logger = logging.getLogger(__name__)


class CKKSByteBackend(ByteBackend):
    name = "ckks"

    def __init__(self, config: Optional[CKKSConfig] = None,
                 engine_wrapper: Optional[EngineWrapper] = None):
        self.config = config or CKKSConfig()
        self.eng = engine_wrapper or EngineWrapper(self.config)
        self.bitwise = BitwiseService(self.eng, self.config)
        tables = standard_tables()
        self._shl = {k: tables[f"shl{k}"] for k in range(1, 8)}
        self._shr = {k: tables[f"shr{k}"] for k in range(1, 8)}
        logger.info("CKKS byte backend ready (%r)", self.config)

    # --- client side -----------------------------------------------------
    def _encrypt_value(self, value: int):
        z = ZetaEncoder.to_zeta(np.array([value]), 256)[0]
        return self.eng.encrypt(np.full(self.eng.slot_count, z, dtype=np.complex128))

    def _decrypt_value(self, ct) -> int:
        slots = np.asarray(self.eng.decrypt(ct))
        return int(ZetaEncoder.from_zeta(slots[:1], 256)[0])

    # --- homomorphic primitives ------------------------------------------
    def _run(self, op: str, fn, *args):
        try:
            return fn(*args)
        except FHEEvaluationError:
            raise
        except RuntimeError as e:
            raise FHEEvaluationError(f"{op} failed: {e}") from e

    def xor(self, a: Any, b: Any) -> Any:
        return self._run("xor", self.bitwise.bitwise, a, b, "xor")

    def and_(self, a: Any, b: Any) -> Any:
        return self._run("and", self.bitwise.bitwise, a, b, "and")

    def or_(self, a: Any, b: Any) -> Any:
        return self._run("or", self.bitwise.bitwise, a, b, "or")

    def not_(self, a: Any) -> Any:
        return self._run("not", self.bitwise.complement, a)

    def neg(self, a: Any) -> Any:
        return self._run("neg", self.bitwise.negate, a)

    def shl(self, a: Any, amount: int) -> Any:
        return self._run("shl", self.bitwise.lookup, a, self._shl[amount])

    def shr(self, a: Any, amount: int) -> Any:
        return self._run("shr", self.bitwise.lookup, a, self._shr[amount])

    def lookup(self, a: Any, table: Tuple[int, ...]) -> Any:
        return self._run("lookup", self.bitwise.lookup, a, table)
