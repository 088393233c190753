"""Transaction host protocol — atomic, serialized execution of vault calls."""
from typing import Any, AsyncContextManager, Protocol


class Journaled(Protocol):
    """State holder that can be checkpointed and rolled back."""

    def checkpoint(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class TransactionHost(Protocol):
    """Runs each top-level call fully or not at all, one at a time."""

    def transaction(self, label: str) -> AsyncContextManager[None]: ...

    def view(self, label: str) -> AsyncContextManager[None]: ...
