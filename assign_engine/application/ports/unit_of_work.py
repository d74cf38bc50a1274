"""Port interface for an atomic group of writes."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager


class UnitOfWork(ABC):
    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Writes made inside the block commit together or not at all.

        The block re-raises whatever failed after rolling back.
        """
        ...
