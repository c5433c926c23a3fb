import pytest

from fhe_aes.block_cipher import AESFHECipher, decrypt_block, encrypt_block
from fhe_aes.errors import BackendMismatchError, InputShapeError
from fhe_aes.key_scheduling import KeyScheduler
from fhe_aes.reference import aes128_decrypt, aes128_encrypt
from fhe_aes.simulation import SimulatedByteBackend

FIPS_KEY = bytes(range(16))
FIPS_PT = bytes.fromhex("00112233445566778899aabbccddeeff")
FIPS_CT = bytes.fromhex("69c4e0d86a7b0430d8cdb78070b4c55a")


@pytest.fixture
def cipher(backend, pool):
    return AESFHECipher(backend, pool)


@pytest.fixture
def expanded(backend, pool):
    return KeyScheduler(backend, pool).expand(backend.encrypt_bytes(FIPS_KEY))


def test_known_answer(cipher, backend, expanded):
    out = cipher.encrypt_block(backend.encrypt_bytes(FIPS_PT), expanded)
    assert backend.decrypt_bytes(out) == FIPS_CT
    back = cipher.decrypt_block(backend.encrypt_bytes(FIPS_CT), expanded)
    assert backend.decrypt_bytes(back) == FIPS_PT


def test_fips197_appendix_b(backend, pool):
    key = bytes.fromhex("2b7e151628aed2a6abf7158809cf4f3c")
    pt = bytes.fromhex("3243f6a8885a308d313198a2e0370734")
    expanded = KeyScheduler(backend, pool).expand(backend.encrypt_bytes(key))
    out = encrypt_block(backend.encrypt_bytes(pt), expanded, pool)
    assert backend.decrypt_bytes(out) == bytes.fromhex("3925841d02dc09fbdc118597196a0b32")


@pytest.mark.parametrize("seed", range(4))
def test_round_trip_and_reference(cipher, backend, expanded, seed):
    block = bytes((seed * 53 + i * 29) & 0xFF for i in range(16))
    ct = cipher.encrypt_block(backend.encrypt_bytes(block), expanded)
    assert backend.decrypt_bytes(ct) == aes128_encrypt(FIPS_KEY, block)
    assert backend.decrypt_bytes(decrypt_block(ct, expanded)) == block


def test_dispatch_order_independence(backend, expanded, shuffling_pool):
    shuffled = AESFHECipher(backend, shuffling_pool)
    threaded = AESFHECipher(backend, None)
    block = backend.encrypt_bytes(FIPS_PT)
    a = backend.decrypt_bytes(shuffled.encrypt_block(block, expanded))
    b = backend.decrypt_bytes(threaded.encrypt_block(block, expanded))
    assert a == b == FIPS_CT


def test_individual_steps(cipher, backend, expanded):
    state = backend.encrypt_bytes(FIPS_PT)
    for fwd, inv in [
        (cipher.sub_bytes, cipher.inv_sub_bytes),
        (cipher.shift_rows, cipher.inv_shift_rows),
        (cipher.mix_columns, cipher.inv_mix_columns),
    ]:
        assert backend.decrypt_bytes(inv(fwd(state))) == FIPS_PT
    rk = expanded.round_key(0)
    once = cipher.add_round_key(state, rk)
    assert backend.decrypt_bytes(once) == bytes(a ^ b for a, b in zip(FIPS_PT, FIPS_KEY))
    assert backend.decrypt_bytes(cipher.add_round_key(once, rk)) == FIPS_PT


def test_rejects_bad_sizes_before_any_operation(cipher, backend, expanded):
    short = backend.encrypt_bytes(bytes(15))
    backend.counter.reset()
    with pytest.raises(InputShapeError):
        cipher.encrypt_block(short, expanded)
    with pytest.raises(InputShapeError):
        cipher.decrypt_block(backend.encrypt_bytes(bytes(16)), list(expanded)[:175])
    assert backend.counter.total == 16


def test_rejects_foreign_block(cipher, expanded):
    other = SimulatedByteBackend()
    with pytest.raises(BackendMismatchError):
        cipher.encrypt_block(other.encrypt_bytes(FIPS_PT), expanded)


def test_operation_count_per_block(cipher, backend, expanded):
    block = backend.encrypt_bytes(FIPS_PT)
    backend.counter.reset()
    cipher.encrypt_block(block, expanded)
    counts = backend.counter.by_operation()
    # 10 rounds of 16 S-box lookups
    assert counts["lookup"] == 160
    assert "encrypt" not in counts or counts["encrypt"] <= 1


def test_rejects_mixed_backend_block_before_any_operation(cipher, backend, expanded):
    other = SimulatedByteBackend()
    mixed = backend.encrypt_bytes(FIPS_PT[:15]) + other.encrypt_bytes(FIPS_PT[15:])
    backend.counter.reset()
    with pytest.raises(BackendMismatchError):
        cipher.encrypt_block(mixed, expanded)
    with pytest.raises(BackendMismatchError):
        cipher.decrypt_block(mixed, expanded)
    assert backend.counter.total == 0


def test_rejects_mixed_backend_expanded_key(cipher, backend, expanded):
    other = SimulatedByteBackend()
    tampered = list(expanded)
    tampered[100] = other.encrypt(0)
    block = backend.encrypt_bytes(FIPS_PT)
    backend.counter.reset()
    with pytest.raises(BackendMismatchError):
        cipher.encrypt_block(block, tampered)
    assert backend.counter.total == 0


@pytest.mark.parametrize("seed", range(3))
def test_decrypt_matches_reference(cipher, backend, expanded, seed):
    ct = bytes((seed * 71 + i * 13) & 0xFF for i in range(16))
    out = cipher.decrypt_block(backend.encrypt_bytes(ct), expanded)
    assert backend.decrypt_bytes(out) == aes128_decrypt(FIPS_KEY, ct)
