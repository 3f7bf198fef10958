import pytest
from botocore.exceptions import EndpointConnectionError

from src.services.errors import NotFoundError, UpstreamError
from src.services.storage_service import StorageService


def test_key_for_job_uses_prefix(storage):
    assert storage.key_for_job("abc") == "kits/abc.zip"
    assert StorageService(client=object(), bucket="b", prefix="").key_for_job("abc") == "abc.zip"


def test_upload_archive_sets_zip_content_type(tmp_path, storage, s3_client):
    archive = tmp_path / "abc.zip"
    archive.write_bytes(b"PK")

    key = storage.upload_archive(str(archive), "kits/abc.zip")

    assert key == "kits/abc.zip"
    assert s3_client.uploads[0]["bucket"] == "kits"
    assert s3_client.uploads[0]["extra"] == {"ContentType": "application/zip"}


def test_upload_failure_raises_upstream_error(tmp_path):
    class UnreachableClient:
        def upload_file(self, *args, **kwargs):
            raise EndpointConnectionError(endpoint_url="https://s3.test")

    storage = StorageService(client=UnreachableClient(), bucket="kits", prefix="")
    archive = tmp_path / "abc.zip"
    archive.write_bytes(b"PK")

    with pytest.raises(UpstreamError):
        storage.upload_archive(str(archive), "abc.zip")


def test_presigned_url_for_existing_object(storage, s3_client):
    s3_client.objects["kits/abc.zip"] = b"PK"

    url = storage.presigned_download_url("kits/abc.zip")

    assert url.startswith("https://kits.s3.test/kits/abc.zip")
    assert "X-Amz-Expires=600" in url


def test_presigned_url_expiry_is_capped(s3_client):
    s3_client.objects["abc.zip"] = b"PK"
    storage = StorageService(client=s3_client, bucket="kits", prefix="", url_expiry_seconds=30 * 86400)

    assert "X-Amz-Expires=604800" in storage.presigned_download_url("abc.zip")


def test_presigned_url_for_missing_object_raises_not_found(storage):
    with pytest.raises(NotFoundError):
        storage.presigned_download_url("kits/missing.zip")
