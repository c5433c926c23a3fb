"""
FFT-derived LUT polynomial coefficients for the CKKS byte backend.

A function f on Z_n, with inputs encoded as zeta_n^x and outputs as
zeta_m^f(x) (zeta_k = exp(-2j*pi/k)), is interpolated by

    p(z) = sum_k c_k z^k,   c = ifft([zeta_m^f(x) for x in 0..n-1])

so that p(zeta_n^x) = zeta_m^f(x) exactly on the n roots of unity. The
bivariate case f(i, j) uses ifft2 the same way.

Coefficients are cheap to compute in-process; running this module writes
them as JSON so an engine can load them instead:

    python -m fhe_aes.generator.generate_lut_coeffs --out coeffs/
"""
import argparse
import json
import operator
from pathlib import Path
from typing import Callable, Dict, Tuple

import numpy as np

from fhe_aes.sbox.sbox_service import AES_INV_SBOX, AES_SBOX

DEFAULT_TOL = 1e-12

BITWISE_OPS: Dict[str, Callable[[int, int], int]] = {
    "xor": operator.xor,
    "and": operator.and_,
    "or": operator.or_,
}


def compute_1d_lut_coeffs(output_func: Callable[[int], int], n: int = 256,
                          out_modulus: int = 256) -> np.ndarray:
    """
    Coefficients c_0..c_{n-1} of the univariate LUT polynomial for f on 0..n-1.
    """
    zeta = np.exp(-2j * np.pi / out_modulus)
    lut = np.array([zeta ** (output_func(x) % out_modulus) for x in range(n)], dtype=np.complex128)
    return np.fft.ifft(lut)


def compute_2d_lut_coeffs(output_func: Callable[[int, int], int], n: int = 16,
                          out_modulus: int = 16) -> np.ndarray:
    """
    n x n coefficients of the bivariate LUT polynomial for f on (0..n-1)^2.
    """
    zeta = np.exp(-2j * np.pi / out_modulus)
    lut2d = np.zeros((n, n), dtype=np.complex128)
    for i in range(n):
        for j in range(n):
            lut2d[i, j] = zeta ** (output_func(i, j) % out_modulus)
    # ifft2 includes the 1/(n*n) scaling
    return np.fft.ifft2(lut2d)


def sparse_1d(coeffs: np.ndarray, tol: float = DEFAULT_TOL) -> Dict[int, complex]:
    return {int(k): complex(c) for k, c in enumerate(coeffs) if abs(c) > tol}


def sparse_2d(coeffs: np.ndarray, tol: float = DEFAULT_TOL) -> Dict[Tuple[int, int], complex]:
    n, m = coeffs.shape
    return {
        (i, j): complex(coeffs[i, j])
        for i in range(n) for j in range(m)
        if abs(coeffs[i, j]) > tol
    }


def nibble_hi_coeffs() -> Dict[int, complex]:
    """zeta_256^x -> zeta_16^(x >> 4)."""
    return sparse_1d(compute_1d_lut_coeffs(lambda x: x >> 4, n=256, out_modulus=16))


def bitwise_coeffs(op: str, half: str) -> Dict[Tuple[int, int], complex]:
    """
    Nibble-wise bitwise op. The high half answers in the zeta_16 domain, the
    low half directly in zeta_256, so that hi * lo = zeta_256^(16*hi + lo).
    """
    func = BITWISE_OPS[op]
    out_modulus = 16 if half == "hi" else 256
    return sparse_2d(compute_2d_lut_coeffs(func, n=16, out_modulus=out_modulus))


def lookup_coeffs(table) -> Dict[int, complex]:
    return sparse_1d(compute_1d_lut_coeffs(lambda x: table[x], n=256, out_modulus=256))


def standard_tables() -> Dict[str, Tuple[int, ...]]:
    """Named 256-entry tables the AES circuit evaluates."""
    tables = {"sbox": tuple(AES_SBOX), "inv_sbox": tuple(AES_INV_SBOX)}
    for k in range(1, 8):
        tables[f"shl{k}"] = tuple((x << k) & 0xFF for x in range(256))
        tables[f"shr{k}"] = tuple(x >> k for x in range(256))
    return tables


def save_coeffs(coeffs: dict, path: Path, tol: float = DEFAULT_TOL) -> None:
    """
    JSON entries: [index, real, imag] (1D) or [i, j, real, imag] (2D).
    """
    entries = []
    for key, c in sorted(coeffs.items()):
        idx = list(key) if isinstance(key, tuple) else [key]
        entries.append(idx + [float(c.real), float(c.imag)])
    data = {"tol": tol, "entries": entries}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)


def write_all(out_dir: Path) -> Dict[str, int]:
    written = {}
    sets = {"nibble_hi": nibble_hi_coeffs()}
    for op in BITWISE_OPS:
        for half in ("hi", "lo"):
            sets[f"{op}_{half}"] = bitwise_coeffs(op, half)
    for name, table in standard_tables().items():
        sets[name] = lookup_coeffs(table)
    for name, coeffs in sets.items():
        save_coeffs(coeffs, out_dir / f"{name}.json")
        written[name] = len(coeffs)
    return written


def main(argv=None):
    parser = argparse.ArgumentParser(description="Write CKKS LUT coefficient tables as JSON")
    parser.add_argument("--out", type=Path, default=Path(__file__).resolve().parent / "coeffs")
    args = parser.parse_args(argv)
    written = write_all(args.out)
    for name, count in written.items():
        print(f"{name}: {count} coeffs")
    print(f"Wrote {len(written)} tables to {args.out}")


if __name__ == "__main__":
    main()
