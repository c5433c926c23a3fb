#!/usr/bin/env python3
"""
CKKS zeta-domain byte arithmetic.

A byte x lives in every slot of a ciphertext as zeta_256^x. On top of the
desilofhe engine this module provides:
 - univariate 256-point LUT evaluation (S-box, shifts, nibble extraction)
 - nibble split: hi = LUT(x >> 4) in zeta_16, lo = (zeta_256^x)^16 = zeta_16^(x & 15)
 - bivariate 16x16 LUT evaluation for XOR / AND / OR on nibbles
 - level management: bootstrap before a stage whose depth no longer fits
"""
import json
import logging
import threading
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np
from desilofhe import Ciphertext

from fhe_aes.engine_context import EngineContext
from fhe_aes.errors import FHEEvaluationError
from fhe_aes.generator import generate_lut_coeffs as lutgen
from fhe_aes.utils import zeta_decode, zeta_encode

logger = logging.getLogger(__name__)


class CKKSConfig:
    """
    Configuration parameters for the CKKS byte backend.
    """

    def __init__(
            self,
            signature: int = 1,
            max_level: int = 30,
            mode: str = "cpu",
            use_bootstrap: bool = True,
            thread_count: int = 0,
            device_id: int = 0,
            coeffs_dir: Optional[Path] = None,
            level_margin: int = 1,
    ):
        self.signature = signature
        self.max_level = max_level
        self.mode = mode
        self.use_bootstrap = use_bootstrap
        self.thread_count = thread_count
        self.device_id = device_id
        self.coeffs_dir = Path(coeffs_dir) if coeffs_dir is not None else None
        self.level_margin = level_margin

    def __repr__(self) -> str:
        return (f"CKKSConfig(signature={self.signature}, mode={self.mode!r}, "
                f"use_bootstrap={self.use_bootstrap}, thread_count={self.thread_count})")


class EngineWrapper:
    """
    Wrapper around EngineContext and Engine for convenience.
    """

    def __init__(self, config: CKKSConfig):
        ctx = EngineContext(
            signature=config.signature,
            max_level=config.max_level,
            mode=config.mode,
            use_bootstrap=config.use_bootstrap,
            thread_count=config.thread_count,
            device_id=config.device_id,
        )
        self.ctx = ctx
        self.engine = ctx.engine
        self.public_key = ctx.public_key
        self.secret_key = ctx.secret_key
        self.relin_key = ctx.relinearization_key
        self.conj_key = ctx.conjugation_key
        self.boot_key = ctx.bootstrap_key

    @property
    def slot_count(self) -> int:
        return self.engine.slot_count

    def encrypt(self, data: np.ndarray):
        return self.engine.encrypt(data, self.public_key)

    def decrypt(self, ct) -> np.ndarray:
        return self.engine.decrypt(ct, self.secret_key)

    def encode(self, vec: np.ndarray):
        return self.engine.encode(vec)

    def multiply(self, a, b, relin_key=None):
        if isinstance(a, Ciphertext) and isinstance(b, Ciphertext):
            return self.engine.multiply(a, b, relin_key or self.relin_key)
        # ciphertext x plaintext or scalar
        return self.engine.multiply(a, b)

    def add(self, a, b):
        return self.engine.add(a, b)

    def intt(self, ct):
        return self.engine.intt(ct)

    def _coeff_form(self, op, ct, *args):
        # plaintext products come back in NTT form, which some engine ops refuse
        try:
            return op(ct, *args)
        except RuntimeError as e:
            if "NTT form" not in str(e):
                raise
            return op(self.intt(ct), *args)

    def make_power_basis(self, ct, degree: int):
        return self._coeff_form(
            lambda c, d: self.engine.make_power_basis(c, d, self.relin_key), ct, degree
        )

    def conjugate(self, ct):
        return self.engine.conjugate(ct, self.conj_key)

    @property
    def can_bootstrap(self) -> bool:
        return self.boot_key is not None

    def bootstrap(self, ct):
        """
        Refresh ciphertext modulus level using bootstrapping
        """
        return self._coeff_form(
            lambda c: self.engine.bootstrap(c, self.relin_key, self.conj_key, self.boot_key), ct
        )


class ZetaEncoder:
    """
    Encode integers to roots of unity (zeta) and decode back.
    """

    @staticmethod
    def to_zeta(arr: np.ndarray, modulus: int = 256) -> np.ndarray:
        return zeta_encode(arr, modulus)

    @staticmethod
    def from_zeta(z_arr: np.ndarray, modulus: int = 256) -> np.ndarray:
        return zeta_decode(z_arr, modulus)


class CoefficientCache:
    """
    Sparse LUT coefficients and their plaintext encodings, per slot count.
    """

    def __init__(self, coeffs: Dict[Any, complex]):
        self.coeffs = coeffs
        self._plain_cache: Dict[int, Dict[Any, object]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_json(cls, path: Path) -> "CoefficientCache":
        return cls(_load_json_coeffs(Path(path)))

    def exponents(self):
        return set(self.coeffs) - {0, (0, 0)}

    def get_plaintext_coeffs(self, engine_wrapper: EngineWrapper) -> Dict[Any, object]:
        sc = engine_wrapper.slot_count
        with self._lock:
            if sc not in self._plain_cache:
                self._plain_cache[sc] = {
                    key: engine_wrapper.encode(np.full(sc, val, dtype=np.complex128))
                    for key, val in self.coeffs.items()
                }
            return self._plain_cache[sc]


@lru_cache(maxsize=None)
def _load_json_coeffs(path: Path) -> Dict[Any, complex]:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    coeffs: Dict[Any, complex] = {}
    for entry in data['entries']:
        # 1D: [i, real, imag]
        if len(entry) == 3:
            i, real, imag = entry
            coeffs[int(i)] = complex(real, imag)
        # 2D: [i, j, real, imag]
        elif len(entry) == 4:
            i, j, real, imag = entry
            coeffs[(int(i), int(j))] = complex(real, imag)
        else:
            raise ValueError(f"Unrecognized entry format: {entry}")
    return coeffs


class BitwiseService:
    """
    Homomorphic byte operations in the zeta domain.
    """

    # power basis up to 128 (7 levels) + plaintext coefficient product
    LUT_1D_DEPTH = 8
    # x^16 by repeated squaring
    NIBBLE_LO_DEPTH = 4
    # power basis up to 8 (3) + nibble product (1) + plaintext coefficient product (1)
    LUT_2D_DEPTH = 5

    def __init__(self, engine_wrapper: EngineWrapper, config: CKKSConfig):
        self.eng = engine_wrapper
        self.config = config
        self._caches: Dict[Any, CoefficientCache] = {}
        self._lock = threading.Lock()
        self._table_names = {table: name for name, table in lutgen.standard_tables().items()}
        sc = self.eng.slot_count
        self._pt_zeta255 = self.eng.encode(np.full(sc, zeta_encode([255], 256)[0], dtype=np.complex128))

    # --- coefficient caches ------------------------------------------------
    def _cache(self, name: Optional[str], key: Any, build) -> CoefficientCache:
        with self._lock:
            cache = self._caches.get(key)
            if cache is None:
                path = self.config.coeffs_dir / f"{name}.json" if self.config.coeffs_dir and name else None
                if path is not None and path.exists():
                    logger.debug("loading LUT coefficients from %s", path)
                    cache = CoefficientCache.from_json(path)
                else:
                    cache = CoefficientCache(build())
                self._caches[key] = cache
            return cache

    def nibble_hi_cache(self) -> CoefficientCache:
        return self._cache("nibble_hi", "nibble_hi", lutgen.nibble_hi_coeffs)

    def bitwise_cache(self, op: str, half: str) -> CoefficientCache:
        name = f"{op}_{half}"
        return self._cache(name, name, lambda: lutgen.bitwise_coeffs(op, half))

    def table_cache(self, table: Tuple[int, ...]) -> CoefficientCache:
        return self._cache(self._table_names.get(table), table, lambda: lutgen.lookup_coeffs(table))

    # --- level management --------------------------------------------------
    def ensure_level(self, ct, depth: int):
        """Bootstrap ct if fewer than depth (+ margin) levels remain."""
        if ct.level >= depth + self.config.level_margin:
            return ct
        if not self.eng.can_bootstrap:
            raise FHEEvaluationError(
                f"ciphertext level {ct.level} cannot cover depth {depth}; "
                f"enable bootstrapping or raise max_level"
            )
        refreshed = self.eng.bootstrap(ct)
        if refreshed.level < depth:
            raise FHEEvaluationError(
                f"bootstrapped level {refreshed.level} still below required depth {depth}"
            )
        return refreshed

    # --- polynomial evaluation ---------------------------------------------
    def _power_basis(self, ct, exponents, n: int) -> Dict[int, Any]:
        """
        ct^k for every needed k in 1..n-1; exponents above n/2 come from
        conjugation, since conj(zeta^k) = zeta^(n-k) on the unit circle.
        """
        if not exponents:
            return {}
        degree = max(min(k, n - k) for k in exponents)
        pos = self.eng.make_power_basis(ct, degree)
        basis = {}
        for k in exponents:
            basis[k] = pos[k - 1] if k <= degree else self.eng.conjugate(pos[n - k - 1])
        return basis

    def _accumulate(self, terms, constant, fallback):
        res = None
        for term in terms:
            res = term if res is None else self.eng.add(res, term)
        if res is None:
            # constant table: keep a ciphertext to add the plaintext to
            res = self.eng.multiply(fallback, 0.0)
        if constant is not None:
            res = self.eng.add(res, constant)
        return res

    def eval_lut_1d(self, ct, cache: CoefficientCache, n: int = 256):
        ct = self.ensure_level(ct, self.LUT_1D_DEPTH)
        eng = self.eng
        pts = cache.get_plaintext_coeffs(eng)
        basis = self._power_basis(ct, cache.exponents(), n)
        terms = [eng.multiply(basis[k], pt) for k, pt in pts.items() if k != 0]
        return self._accumulate(terms, pts.get(0), ct)

    def eval_lut_2d(self, ct_a, ct_b, cache: CoefficientCache, n: int = 16):
        ct_a = self.ensure_level(ct_a, self.LUT_2D_DEPTH)
        ct_b = self.ensure_level(ct_b, self.LUT_2D_DEPTH)
        eng = self.eng
        pts = cache.get_plaintext_coeffs(eng)
        exps = cache.exponents()
        basis_a = self._power_basis(ct_a, {i for i, _ in exps if i}, n)
        basis_b = self._power_basis(ct_b, {j for _, j in exps if j}, n)

        terms = []
        for (i, j), pt in pts.items():
            if i == 0 and j == 0:
                continue
            if i == 0:
                mono = basis_b[j]
            elif j == 0:
                mono = basis_a[i]
            else:
                mono = eng.multiply(basis_a[i], basis_b[j])
            terms.append(eng.multiply(mono, pt))
        return self._accumulate(terms, pts.get((0, 0)), ct_a)

    # --- byte operations ---------------------------------------------------
    def extract_nibbles(self, ct) -> Tuple[Any, Any]:
        """
        Split zeta_256^x into (zeta_16^(x >> 4), zeta_16^(x & 15)).
        """
        hi = self.eval_lut_1d(ct, self.nibble_hi_cache())
        # domain reduction: (zeta_256^x)^16 = zeta_16^x = zeta_16^(x mod 16)
        lo = self.ensure_level(ct, self.NIBBLE_LO_DEPTH)
        for _ in range(self.NIBBLE_LO_DEPTH):
            lo = self.eng.multiply(lo, lo)
        return hi, lo

    def bitwise(self, ct_a, ct_b, op: str):
        a_hi, a_lo = self.extract_nibbles(ct_a)
        b_hi, b_lo = self.extract_nibbles(ct_b)
        r_hi = self.eval_lut_2d(a_hi, b_hi, self.bitwise_cache(op, "hi"))
        r_lo = self.eval_lut_2d(a_lo, b_lo, self.bitwise_cache(op, "lo"))
        # zeta_16^h * zeta_256^l = zeta_256^(16h + l)
        r_hi = self.ensure_level(r_hi, 1)
        r_lo = self.ensure_level(r_lo, 1)
        return self.eng.multiply(r_hi, r_lo)

    def lookup(self, ct, table: Tuple[int, ...]):
        return self.eval_lut_1d(ct, self.table_cache(table))

    def negate(self, ct):
        """zeta^-x, i.e. -x mod 256."""
        return self.eng.conjugate(ct)

    def complement(self, ct):
        """zeta^(255 - x), i.e. ~x."""
        ct = self.ensure_level(ct, 1)
        return self.eng.multiply(self.eng.conjugate(ct), self._pt_zeta255)
