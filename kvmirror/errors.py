"""
Error taxonomy for KV-Mirror.

None of these escape the public cache operations: the cache unit raises
them inside its own tasks and logs them at the task boundary.
"""


class KVMirrorError(Exception):
    """Base class for all KV-Mirror errors."""


class BackendError(KVMirrorError):
    """A backend call failed."""

    def __init__(self, key: str, message: str = ""):
        self.key = key
        super().__init__(f"{key}: {message}" if message else key)


class BackendReadError(BackendError):
    """Backend ``get`` failed or returned undecodable content."""


class BackendWriteError(BackendError):
    """Backend ``set`` failed."""


class PreconditionError(KVMirrorError):
    """A mutation's preconditions did not hold (unknown item, bad id...)."""


class EncodeError(KVMirrorError):
    """Content could not be serialized to JSON."""


class DecodeError(KVMirrorError):
    """Stored text is not valid JSON."""
