from __future__ import annotations

import re
from datetime import timedelta

import pytest

from src.internship_portal.internship_portal.core.enums import BlobKind
from src.internship_portal.internship_portal.core.exceptions import ValidationError
from src.internship_portal.internship_portal.storage.blob_store import build_blob_path, safe_filename, validate_blob
from src.internship_portal.internship_portal.storage.minio_blob_store import MinioBlobStore


class FakeObject:
    def __init__(self, data: bytes):
        self._data = data
        self.closed = False
        self.released = False

    def read(self):
        return self._data

    def close(self):
        self.closed = True

    def release_conn(self):
        self.released = True


class FakeMinio:
    def __init__(self):
        self.buckets = set()
        self.objects = {}
        self.last_response = None

    def bucket_exists(self, bucket):
        return bucket in self.buckets

    def make_bucket(self, bucket):
        self.buckets.add(bucket)

    def put_object(self, bucket, name, stream, length, content_type):
        self.objects[(bucket, name)] = (stream.read(length), content_type)

    def presigned_get_object(self, bucket, name, expires):
        return f"https://minio.test/{bucket}/{name}?expires={int(expires.total_seconds())}"

    def get_object(self, bucket, name):
        self.last_response = FakeObject(self.objects[(bucket, name)][0])
        return self.last_response

    def remove_object(self, bucket, name):
        self.objects.pop((bucket, name), None)


def test_build_blob_path_layout():
    path = build_blob_path(BlobKind.RESUMES, "uid-1", "My CV (final).pdf")
    assert re.fullmatch(r"resumes/uid-1/[0-9a-f]{32}-My-CV-final-.pdf", path)


def test_build_blob_path_is_unique_per_upload():
    assert build_blob_path(BlobKind.PHOTOS, "u", "a.png") != build_blob_path(BlobKind.PHOTOS, "u", "a.png")


def test_safe_filename_falls_back():
    assert safe_filename("../..") == "file"
    assert safe_filename("") == "file"


def test_validate_blob_limits():
    validate_blob(BlobKind.PHOTOS, data=b"x", content_type="image/png")
    with pytest.raises(ValidationError):
        validate_blob(BlobKind.PHOTOS, data=b"", content_type="image/png")
    with pytest.raises(ValidationError):
        validate_blob(BlobKind.PHOTOS, data=b"x", content_type="application/pdf")
    with pytest.raises(ValidationError):
        validate_blob(BlobKind.PHOTOS, data=b"x" * (5 * 1024 * 1024 + 1), content_type="image/png")


def test_minio_store_round_trip():
    client = FakeMinio()
    store = MinioBlobStore(client, "portal", url_expires_seconds=60)
    store.ensure_bucket()
    assert "portal" in client.buckets

    stored = store.upload(path="photos/u/1-a.png", data=b"png-bytes", content_type="image/png")
    assert stored.path == "photos/u/1-a.png"
    assert stored.url == "https://minio.test/portal/photos/u/1-a.png?expires=60"
    assert client.objects[("portal", "photos/u/1-a.png")] == (b"png-bytes", "image/png")

    assert store.download("photos/u/1-a.png") == b"png-bytes"
    assert client.last_response.closed and client.last_response.released

    store.delete("photos/u/1-a.png")
    assert client.objects == {}


def test_presigned_expiry_is_a_timedelta():
    seen = {}

    class Client(FakeMinio):
        def presigned_get_object(self, bucket, name, expires):
            seen["expires"] = expires
            return "url"

    MinioBlobStore(Client(), "b", url_expires_seconds=120).upload(path="p", data=b"1", content_type="image/png")
    assert seen["expires"] == timedelta(seconds=120)
