"""Uploaded documents kept on the local filesystem."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO

from werkzeug.utils import secure_filename

from config import Config

from .abstract_storage import AbstractStorage

logger = logging.getLogger(__name__)


class LocalStorage(AbstractStorage):
    """Flat directory of uploads under ``UPLOAD_DIR``, created on start."""

    def __init__(self, upload_dir: str | None = None):
        self.base_directory = Path(upload_dir or Config.UPLOAD_DIR)
        os.makedirs(self.base_directory, exist_ok=True)

    def _path(self, name: str) -> Path:
        safe_name = secure_filename(name)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")
        return self.base_directory / safe_name

    def save(self, file_obj: IO[bytes], filename: str) -> str:
        destination = self._path(filename)
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            destination.write_bytes(file_obj.read())
        logger.debug("Stored upload %s", destination.name)
        return destination.name

    def delete(self, name: str) -> bool:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Removed upload %s", path.name)
        return True

    def describe(self) -> dict:
        exists = self.base_directory.is_dir()
        return {
            "exists": exists,
            "writable": exists and os.access(self.base_directory, os.W_OK),
            "file_count": sum(1 for _ in self.base_directory.iterdir()) if exists else 0,
        }
