import io
from pathlib import Path

import pytest
from werkzeug.datastructures import FileStorage

from src.services.upload_service import UploadStore


def make_upload(name, data=b"jpeg-bytes"):
    return FileStorage(stream=io.BytesIO(data), filename=name, content_type="image/jpeg")


def test_scoped_saves_sanitized_files_and_removes_them(tmp_path):
    store = UploadStore(tmp_path / "uploads")

    with store.scoped([make_upload("../../etc/passwd.jpg"), make_upload("kitchen.jpg")]) as paths:
        assert len(paths) == 2
        for path in paths:
            assert Path(path).parent == tmp_path / "uploads"
            assert Path(path).exists()
        assert Path(paths[0]).name.endswith("-0-etc_passwd.jpg")
        assert Path(paths[1]).name.endswith("-1-kitchen.jpg")

    assert list((tmp_path / "uploads").iterdir()) == []


def test_scoped_removes_files_when_body_raises(tmp_path):
    store = UploadStore(tmp_path / "uploads")

    with pytest.raises(RuntimeError):
        with store.scoped([make_upload("a.jpg")]):
            raise RuntimeError("pipeline failed")

    assert list((tmp_path / "uploads").iterdir()) == []
