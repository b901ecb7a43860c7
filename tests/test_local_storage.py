"""Tests for the filesystem upload storage."""

from __future__ import annotations

from io import BytesIO

import pytest

from storage import LocalStorage


def test_save_and_delete(tmp_path):
    storage = LocalStorage(str(tmp_path / "uploads"))

    name = storage.save(BytesIO(b"%PDF-1.4"), "passport_copy-1-abcd.pdf")

    assert (tmp_path / "uploads" / name).read_bytes() == b"%PDF-1.4"
    assert storage.describe() == {"exists": True, "writable": True, "file_count": 1}
    assert storage.delete(name) is True
    assert storage.delete(name) is False
    assert storage.describe()["file_count"] == 0


def test_names_cannot_escape_the_upload_directory(tmp_path):
    storage = LocalStorage(str(tmp_path / "uploads"))

    name = storage.save(BytesIO(b"data"), "../../etc/passwd")

    assert name == "etc_passwd"
    assert (tmp_path / "uploads" / "etc_passwd").exists()


def test_empty_name_is_rejected(tmp_path):
    storage = LocalStorage(str(tmp_path / "uploads"))

    with pytest.raises(ValueError):
        storage.save(BytesIO(b"data"), "../")
