import pytest

from fhe_aes.encrypted_byte import EncryptedByte
from fhe_aes.errors import BackendMismatchError, InputShapeError
from fhe_aes.simulation import OperationCounter, SimulatedByteBackend


def test_operators_match_cleartext(backend):
    for a, b in [(0x00, 0xFF), (0x57, 0x83), (0x80, 0x01), (0xAA, 0x55)]:
        ea, eb = backend.encrypt(a), backend.encrypt(b)
        assert backend.decrypt(ea ^ eb) == a ^ b
        assert backend.decrypt(ea & eb) == a & b
        assert backend.decrypt(ea | eb) == a | b
        assert backend.decrypt(~ea) == (~a) & 0xFF
        assert backend.decrypt(-ea) == (-a) & 0xFF
        for n in range(8):
            assert backend.decrypt(ea << n) == (a << n) & 0xFF
            assert backend.decrypt(ea >> n) == a >> n


def test_lookup(backend):
    table = [(x * 7 + 3) & 0xFF for x in range(256)]
    for x in (0, 1, 128, 255):
        assert backend.decrypt(backend.encrypt(x).lookup(table)) == table[x]


def test_lookup_rejects_bad_tables(backend):
    byte = backend.encrypt(1)
    with pytest.raises(InputShapeError):
        byte.lookup(range(255))
    with pytest.raises(InputShapeError):
        byte.lookup([256] * 256)


def test_bad_values_and_shifts(backend):
    with pytest.raises(InputShapeError):
        backend.encrypt(256)
    with pytest.raises(InputShapeError):
        backend.encrypt(-1)
    with pytest.raises(InputShapeError):
        backend.encrypt(3) << 8


def test_mixing_with_cleartext_is_refused(backend):
    byte = backend.encrypt(3)
    with pytest.raises(TypeError):
        byte ^ 3
    with pytest.raises(TypeError):
        5 & byte
    with pytest.raises(TypeError):
        backend.decrypt(3)


def test_mixing_backends_is_refused(backend):
    other = SimulatedByteBackend()
    with pytest.raises(BackendMismatchError):
        backend.encrypt(1) ^ other.encrypt(2)
    with pytest.raises(BackendMismatchError):
        backend.decrypt(other.encrypt(2))


def test_handle_is_immutable_and_opaque(backend):
    byte = backend.encrypt(0x42)
    with pytest.raises(AttributeError):
        byte._ct = None
    assert "42" not in repr(byte) and "66" not in repr(byte)
    assert "66" not in repr(byte.ciphertext)
    assert isinstance(byte, EncryptedByte)


def test_operation_counter():
    counter = OperationCounter()
    backend = SimulatedByteBackend(counter)
    a, b = backend.encrypt_bytes([1, 2])
    _ = (a ^ b) & a
    _ = a << 0  # zero shift is free
    assert counter["encrypt"] == 2
    assert counter["xor"] == 1
    assert counter["and"] == 1
    assert counter["shl"] == 0
    assert counter.total == 4
    assert counter.summary().startswith("4 ops")
    counter.reset()
    assert counter.total == 0
    assert counter.summary() == "no homomorphic operations"


def test_encrypt_decrypt_bytes(backend):
    data = bytes(range(16))
    assert backend.decrypt_bytes(backend.encrypt_bytes(data)) == data
