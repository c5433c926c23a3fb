"""
Command-line driver: encrypt a key and IV, run the homomorphic key schedule
and N counter blocks, then verify everything against PyCryptodome.

    fhe-aes128 -n 4 -i 000102030405060708090a0b0c0d0e0f -k 2b7e151628aed2a6abf7158809cf4f3c
"""
import argparse
import logging
import sys
import time

from fhe_aes.block_cipher import AESFHECipher
from fhe_aes.encrypted_byte import ByteBackend
from fhe_aes.key_scheduling import KeyScheduler
from fhe_aes.orchestrator import BlockOrchestrator, CounterMode
from fhe_aes.reference import counter_blocks, keystream
from fhe_aes.simulation import SimulatedByteBackend
from fhe_aes.utils import hex_to_bytes
from fhe_aes.worker_pool import WorkerPool

logger = logging.getLogger("fhe_aes")


def setup_logging(verbose: bool = False) -> None:
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '[%(asctime)s] %(levelname)s %(name)s: %(message)s', datefmt='%H:%M:%S'
    ))
    logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fhe-aes128", description="Homomorphic AES-128 keystream generation"
    )
    parser.add_argument("-n", "--number-of-outputs", type=int, default=1,
                        help="number of 16-byte blocks to generate")
    parser.add_argument("-i", "--iv", required=True, help="IV, 32 hex chars")
    parser.add_argument("-k", "--key", required=True, help="AES-128 key, 32 hex chars")
    parser.add_argument("--backend", choices=("simulate", "ckks"), default="simulate")
    parser.add_argument("--mode", choices=[m.value for m in CounterMode],
                        default=CounterMode.INCREMENT.value, help="counter block derivation")
    parser.add_argument("--workers", type=int, default=None, help="worker pool size")
    parser.add_argument("--thread-count", type=int, default=0,
                        help="desilofhe engine threads (ckks backend)")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def make_backend(name: str, thread_count: int = 0) -> ByteBackend:
    if name == "ckks":
        # desilofhe is only needed for the real FHE backend
        from fhe_aes.bitwise_service import CKKSConfig
        from fhe_aes.ckks_backend import CKKSByteBackend
        return CKKSByteBackend(CKKSConfig(thread_count=thread_count))
    return SimulatedByteBackend()


def run(args: argparse.Namespace) -> int:
    key = hex_to_bytes(args.key)
    iv = hex_to_bytes(args.iv)
    count = args.number_of_outputs
    mode = CounterMode(args.mode)

    backend = make_backend(args.backend, args.thread_count)
    with WorkerPool(args.workers) as pool:
        enc_key = backend.encrypt_bytes(key)
        enc_iv = backend.encrypt_bytes(iv)

        start = time.perf_counter()
        expanded = KeyScheduler(backend, pool).expand(enc_key)
        orch = BlockOrchestrator(AESFHECipher(backend, pool), expanded, mode)
        blocks = orch.generate(enc_iv, count)
        round_trip = orch.decrypt_blocks(blocks)
        elapsed = time.perf_counter() - start

    outputs = [backend.decrypt_bytes(b) for b in blocks]
    counters = [backend.decrypt_bytes(b) for b in round_trip]

    ok = True
    expected = keystream(key, iv, count, mode.value)
    expected_counters = counter_blocks(iv, count, mode.value)
    for i, (got, want) in enumerate(zip(outputs, expected)):
        print(f"block {i:>4}: {got.hex()}")
        if got != want:
            logger.error("block %d mismatch: expected %s", i, want.hex())
            ok = False
    for i, (got, want) in enumerate(zip(counters, expected_counters)):
        if got != want:
            logger.error("block %d does not decrypt back to its counter %s", i, want.hex())
            ok = False

    print(f"Homomorphic time: {elapsed:.3f} seconds")
    if isinstance(backend, SimulatedByteBackend):
        print(f"Operations: {backend.counter.summary()}")
    print("All blocks match the reference" if ok else "Verification FAILED")
    return 0 if ok else 1


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.number_of_outputs < 1:
        parser.error("--number-of-outputs must be >= 1")
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be >= 1")
    try:
        hex_to_bytes(args.key)
        hex_to_bytes(args.iv)
    except ValueError as e:
        parser.error(str(e))
    setup_logging(args.verbose)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
