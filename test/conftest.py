import random

import pytest

from fhe_aes.simulation import SimulatedByteBackend
from fhe_aes.worker_pool import WorkerPool


class ShufflingPool:
    """map() that evaluates items in a random order but returns them in input order."""

    def __init__(self, seed: int = 0):
        self._rng = random.Random(seed)

    def map(self, fn, items):
        items = list(items)
        order = list(range(len(items)))
        self._rng.shuffle(order)
        out = [None] * len(items)
        for i in order:
            out[i] = fn(items[i])
        return out


@pytest.fixture
def backend():
    return SimulatedByteBackend()


@pytest.fixture(scope="module")
def pool():
    p = WorkerPool(max_workers=4)
    yield p
    p.shutdown()


@pytest.fixture
def shuffling_pool():
    return ShufflingPool(seed=1234)
