"""
Exception types raised by the homomorphic AES package.
"""


class AESFHEError(Exception):
    """Base class for all errors raised by fhe_aes."""


class InputShapeError(AESFHEError, ValueError):
    """A key, block, expanded key or table does not have the required size."""


class BackendMismatchError(AESFHEError, ValueError):
    """Two encrypted operands were produced by different byte backends."""


class FHEEvaluationError(AESFHEError, RuntimeError):
    """The homomorphic evaluation itself failed (level budget, engine error)."""
