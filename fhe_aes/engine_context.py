from __future__ import annotations

import logging
from typing import Any, Optional

from desilofhe import Engine

logger = logging.getLogger(__name__)


class EngineContext:
    """High-level container that owns a desilofhe Engine and all related keys."""

    def __init__(self,
                 signature: int = 1,
                 *,
                 max_level: int = 30,
                 mode: str = 'cpu',
                 use_bootstrap: bool = True,
                 thread_count: int = 0,
                 device_id: int = 0,
                 log_coeff_count: int = 0,
                 special_prime_count: int = 0) -> None:
        """Create an Engine and generate all keys the byte backend needs.

        desilofhe 1.x Engine constructor signatures (2.x renamed use_bootstrap)
        1. Engine(mode='cpu', use_bootstrap=False, thread_count=0, device_id=0)
        2. Engine(max_level, mode='cpu', thread_count=0, device_id=0)
        3. Engine(log_coeff_count, special_prime_count, mode='cpu', thread_count=0, device_id=0)

        Only signature 1 supports bootstrapping; with 2 and 3 every homomorphic
        byte operation has to fit into the fresh level budget.
        """
        if signature == 1:
            self.engine = Engine(
                mode=mode,
                use_bootstrap=use_bootstrap,
                thread_count=thread_count,
                device_id=device_id,
            )
        elif signature == 2:
            self.engine = Engine(
                max_level=max_level,
                mode=mode,
                thread_count=thread_count,
                device_id=device_id,
            )
        elif signature == 3:
            self.engine = Engine(
                log_coeff_count=log_coeff_count,
                special_prime_count=special_prime_count,
                mode=mode,
                thread_count=thread_count,
                device_id=device_id,
            )
        else:
            raise ValueError(f"Unsupported signature: {signature}")

        self.use_bootstrap = use_bootstrap and signature == 1

        self.secret_key = self.engine.create_secret_key()
        self.public_key = self.engine.create_public_key(self.secret_key)
        self.relinearization_key = self.engine.create_relinearization_key(self.secret_key)
        self.conjugation_key = self.engine.create_conjugation_key(self.secret_key)

        self.bootstrap_key: Optional[Any] = None
        if self.use_bootstrap:
            self.bootstrap_key = self.engine.create_bootstrap_key(self.secret_key)

        logger.info(
            "desilofhe engine ready: slot_count=%d max_level=%d bootstrap=%s",
            self.engine.slot_count, self.engine.max_level, self.use_bootstrap,
        )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"EngineContext(engine=Engine(slot_count={self.engine.slot_count}), "
            f"keys=[sk, pk, rlk, cjk{', btk' if self.use_bootstrap else ''}])"
        )

    @property
    def slot_count(self) -> int:
        return self.engine.slot_count

    def encrypt(self, data):
        return self.engine.encrypt(data, self.public_key)

    def decrypt(self, ct):
        return self.engine.decrypt(ct, self.secret_key)
