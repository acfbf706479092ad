from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class SecretBackend(Protocol):
    """Platform secret store primitive (keychain-style get/set/delete).

    Implementations are blocking; callers run them off the event loop.
    Durability is the backend's own concern.
    """

    def get_secret(self, service: str, key: str) -> Optional[str]:
        ...

    def set_secret(self, service: str, key: str, value: str) -> None:
        ...

    def delete_secret(self, service: str, key: str) -> None:
        """Remove the value; removing an absent value is not an error."""
        ...


@runtime_checkable
class InferenceBackend(Protocol):
    """A pre-trained numeric model: fixed-length vector in, vector out.

    Must be safe for concurrent calls once constructed.
    """

    @property
    def expected_input_length(self) -> Optional[int]:
        ...

    def infer(self, vector: Sequence[float]) -> Sequence[float]:
        ...
