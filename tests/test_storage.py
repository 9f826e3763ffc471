# tests/test_storage.py
import logging

import pytest

from app.features.illustrations import storage
from app.features.illustrations.schemas import GenerationResult
from app.features.illustrations.storage import GCSStorageBackend, StoragePublisher, sniff_image
from tests.fakes import FakeStorageBackend, tiny_png_bytes


def _generated(indices=range(5), failed=()):
    out = []
    for i in indices:
        if i in failed:
            out.append(GenerationResult(scene_index=i, error="boom"))
        else:
            out.append(GenerationResult(scene_index=i, provider_url=f"https://provider.example/{i}.png"))
    return out

# --------------------
# publisher
# --------------------

def test_all_uploads_succeed():
    outcome = StoragePublisher(FakeStorageBackend(), max_workers=3).publish("s1", _generated())
    assert outcome.durable is True
    assert outcome.final_urls == [f"https://storage.example/stories/s1/{i}.png" for i in range(5)]


def test_one_upload_failure_does_not_block_others():
    backend = FakeStorageBackend(fail_scenes={3})
    outcome = StoragePublisher(backend).publish("s1", _generated())
    assert len(backend.uploads) == 5
    assert outcome.durable is True
    assert outcome.final_urls == [f"https://storage.example/stories/s1/{i}.png" for i in (0, 1, 2, 4)]
    failed = [u for u in outcome.uploads if not u.success]
    assert [u.scene_index for u in failed] == [3]
    assert failed[0].storage_url is None


def test_all_uploads_fail_falls_back_to_provider_urls():
    outcome = StoragePublisher(FakeStorageBackend(fail_all=True)).publish("s1", _generated(failed={1}))
    assert outcome.durable is False
    assert outcome.final_urls == [f"https://provider.example/{i}.png" for i in (0, 2, 3, 4)]


def test_output_follows_scene_order_and_skips_failed_generations():
    results = list(reversed(_generated(failed={2})))
    backend = FakeStorageBackend()
    outcome = StoragePublisher(backend).publish("s1", results)
    assert [u.scene_index for u in outcome.uploads] == [0, 1, 3, 4]
    assert 2 not in {u[1] for u in backend.uploads}


def test_previous_images_are_cleared_once_before_uploading():
    backend = FakeStorageBackend()
    StoragePublisher(backend).publish("s1", _generated(range(3)))
    assert backend.deleted == ["s1"]
    assert backend.events[0] == ("delete", "s1")
    assert backend.events[1:] == [("upload", "s1")] * 3


def test_clearing_failure_does_not_block_uploads():
    backend = FakeStorageBackend(fail_delete=True)
    outcome = StoragePublisher(backend).publish("s1", _generated())
    assert backend.deleted == ["s1"]
    assert outcome.durable is True
    assert len(outcome.final_urls) == 5


def test_nothing_to_publish():
    backend = FakeStorageBackend()
    outcome = StoragePublisher(backend).publish("s1", [])
    assert backend.deleted == []
    assert outcome.final_urls == []
    assert outcome.durable is False

# --------------------
# GCS backend
# --------------------

def test_sniff_image():
    assert sniff_image(tiny_png_bytes()) == ("png", "image/png")
    with pytest.raises(ValueError):
        sniff_image(b"<html>expired</html>")


class _Resp:
    def __init__(self, content, status=200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise storage.requests.HTTPError(f"{self.status_code}")


def test_gcs_backend_downloads_and_uploads(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen["get"] = (url, timeout)
        return _Resp(tiny_png_bytes())

    def fake_upload(data, *, object_name, content_type, url_mode, bucket_name):
        seen["upload"] = dict(object_name=object_name, content_type=content_type,
                              url_mode=url_mode, bucket_name=bucket_name)
        return {"url": f"https://storage.googleapis.com/{bucket_name}/{object_name}",
                "gs_uri": f"gs://{bucket_name}/{object_name}"}

    monkeypatch.setattr(storage.requests, "get", fake_get)
    monkeypatch.setattr(storage, "upload_bytes_to_gcs", fake_upload)

    backend = GCSStorageBackend(bucket_name="books", url_mode="public", timeout=5)
    url = backend.upload("https://provider.example/2.png", story_id="s1", scene_index=2)

    assert url == "https://storage.googleapis.com/books/stories/s1/2.png"
    assert seen["get"] == ("https://provider.example/2.png", 5)
    assert seen["upload"] == {"object_name": "stories/s1/2.png", "content_type": "image/png",
                              "url_mode": "public", "bucket_name": "books"}


def test_gcs_backend_expired_url_raises(monkeypatch):
    monkeypatch.setattr(storage.requests, "get", lambda url, timeout: _Resp(b"", status=403))
    with pytest.raises(storage.requests.HTTPError):
        GCSStorageBackend(bucket_name="books").upload("https://x", story_id="s1", scene_index=0)


def test_gcs_backend_delete_uses_story_prefix(monkeypatch):
    seen = {}

    def fake_delete(prefix, *, bucket_name):
        seen["args"] = (prefix, bucket_name)
        return 4

    monkeypatch.setattr(storage, "delete_gcs_prefix", fake_delete)
    assert GCSStorageBackend(bucket_name="books").delete_story("s1") == 4
    assert seen["args"] == ("stories/s1/", "books")


def test_signed_url_mode_warns_about_expiry(caplog):
    with caplog.at_level(logging.WARNING, logger=storage.__name__):
        GCSStorageBackend(bucket_name="books", url_mode="signed")
    assert any("expire" in r.getMessage() for r in caplog.records)


def test_public_url_mode_does_not_warn(caplog):
    with caplog.at_level(logging.WARNING, logger=storage.__name__):
        GCSStorageBackend(bucket_name="books", url_mode="public")
    assert not caplog.records
