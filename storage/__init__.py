"""Storage backends and the database gateway."""

from .abstract_storage import AbstractStorage
from .gateway import PersistenceGateway, WriteResult
from .local_storage import LocalStorage

__all__ = ["AbstractStorage", "LocalStorage", "PersistenceGateway", "WriteResult"]
