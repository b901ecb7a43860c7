"""Storage abstraction for uploaded application documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO


class AbstractStorage(ABC):
    """Backend holding uploaded documents as opaque blobs referenced by name."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], filename: str) -> str:
        """Persist a file and return the name it was stored under."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove a stored file; return False when it was already gone."""

    @abstractmethod
    def describe(self) -> dict:
        """Report backend state for health checks."""
