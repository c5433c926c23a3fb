import json

import numpy as np
import pytest

from fhe_aes.generator import generate_lut_coeffs as lutgen
from fhe_aes.sbox.sbox_service import AES_SBOX
from fhe_aes.utils import zeta_decode, zeta_encode


def eval_1d(coeffs, x, n=256):
    z = zeta_encode([x], n)[0]
    return sum(c * z ** k for k, c in coeffs.items())


def eval_2d(coeffs, i, j, n=16):
    zi, zj = zeta_encode([i, j], n)
    return sum(c * zi ** a * zj ** b for (a, b), c in coeffs.items())


def test_nibble_hi_coeffs():
    coeffs = lutgen.nibble_hi_coeffs()
    values = np.array([eval_1d(coeffs, x) for x in range(256)])
    assert np.allclose(np.abs(values), 1.0, atol=1e-6)
    assert np.array_equal(zeta_decode(values, 16), np.arange(256) >> 4)


def test_sbox_lookup_coeffs():
    coeffs = lutgen.lookup_coeffs(AES_SBOX)
    values = np.array([eval_1d(coeffs, x) for x in range(256)])
    assert np.array_equal(zeta_decode(values, 256), np.array(AES_SBOX))


@pytest.mark.parametrize("op", sorted(lutgen.BITWISE_OPS))
def test_bitwise_coeffs(op):
    func = lutgen.BITWISE_OPS[op]
    hi = lutgen.bitwise_coeffs(op, "hi")
    lo = lutgen.bitwise_coeffs(op, "lo")
    for i in range(16):
        for j in range(16):
            assert zeta_decode(np.array([eval_2d(hi, i, j)]), 16)[0] == func(i, j)
            assert zeta_decode(np.array([eval_2d(lo, i, j)]), 256)[0] == func(i, j)


def test_recombination_of_halves():
    # zeta_16^h * zeta_256^l == zeta_256^(16h + l)
    for h in range(16):
        for l in (0, 7, 15):
            prod = zeta_encode([h], 16)[0] * zeta_encode([l], 256)[0]
            assert zeta_decode(np.array([prod]), 256)[0] == 16 * h + l


def test_conjugate_gives_high_powers():
    z = zeta_encode([37], 256)[0]
    for k in (129, 200, 255):
        assert np.isclose(np.conj(z ** (256 - k)), z ** k)


def test_standard_tables():
    tables = lutgen.standard_tables()
    assert tables["sbox"] == tuple(AES_SBOX)
    assert tables["shl1"][0x80] == 0x00
    assert tables["shr7"][0x80] == 0x01
    assert all(len(t) == 256 for t in tables.values())


def test_write_all(tmp_path):
    written = lutgen.write_all(tmp_path)
    assert "xor_hi" in written and "sbox" in written
    with open(tmp_path / "nibble_hi.json", encoding="utf-8") as f:
        data = json.load(f)
    assert len(data["entries"]) == written["nibble_hi"]
    assert all(len(e) == 3 for e in data["entries"])
    with open(tmp_path / "and_lo.json", encoding="utf-8") as f:
        assert all(len(e) == 4 for e in json.load(f)["entries"])
