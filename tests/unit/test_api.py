from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from subflix.app.deps import (
    CurrentUser,
    get_admin_source,
    get_blob_store,
    get_current_user,
    get_store,
    get_supabase,
)
from subflix.app.domain.models import SubtitleStatus
from subflix.app.infra.storage.base import BlobStore
from subflix.app.main import app

from .conftest import InMemorySubtitleStore, StaticAdminSource

SRT = "1\n00:00:01,000 --> 00:00:02,000\nHello"


class Caller:
    """Mutable current-user holder so a test can switch identities."""

    def __init__(self) -> None:
        self.user = CurrentUser(id="u1", name="testuser")

    def __call__(self) -> CurrentUser:
        return self.user

    def become(self, user_id: str) -> None:
        self.user = CurrentUser(id=user_id, name=user_id)


@pytest.fixture
def store() -> InMemorySubtitleStore:
    return InMemorySubtitleStore()


@pytest.fixture
def caller() -> Caller:
    return Caller()


@pytest.fixture
def client(store, caller):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_admin_source] = lambda: StaticAdminSource({"admin1"})
    app.dependency_overrides[get_blob_store] = lambda: None
    app.dependency_overrides[get_current_user] = caller
    yield TestClient(app)
    app.dependency_overrides.clear()


def _submit(client, title: str = "Movie A") -> str:
    res = client.post("/subtitles", json={"title": title, "content": SRT, "donationLink": "https://ko-fi.com/test"})
    assert res.status_code == 201
    return res.json()["id"]


class TestHealth:
    def test_health(self, client) -> None:
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"ok": True}


class TestAuth:
    def test_missing_token_is_401(self) -> None:
        app.dependency_overrides[get_supabase] = lambda: MagicMock()
        try:
            res = TestClient(app).get("/auth/me")
        finally:
            app.dependency_overrides.clear()

        assert res.status_code == 401

    def test_me_reports_admin_flag(self, client, caller) -> None:
        assert client.get("/auth/me").json()["isAdmin"] is False

        caller.become("admin1")
        body = client.get("/auth/me").json()

        assert body["id"] == "admin1"
        assert body["isAdmin"] is True


class TestSubmitRoute:
    def test_submit_returns_pending_id(self, client, store) -> None:
        res = client.post("/subtitles", json={"title": "Movie A", "content": SRT})

        assert res.status_code == 201
        body = res.json()
        assert body["status"] == "pending"
        assert store.ids(SubtitleStatus.PENDING) == {body["id"]}

    def test_blank_title_is_422_with_errors(self, client, store) -> None:
        res = client.post("/subtitles", json={"title": "   ", "content": SRT})

        assert res.status_code == 422
        assert "title is required" in res.json()["detail"]
        assert store.ids(SubtitleStatus.PENDING) == set()

    def test_store_outage_is_503(self, client, store) -> None:
        store.fail_on.add("create")

        res = client.post("/subtitles", json={"title": "Movie A", "content": SRT})

        assert res.status_code == 503


class TestSearchRoute:
    def test_pending_not_searchable_until_approved(self, client, caller) -> None:
        subtitle_id = _submit(client)
        assert client.get("/subtitles", params={"q": "movie"}).json()["total"] == 0

        caller.become("admin1")
        assert client.post(f"/admin/pending/{subtitle_id}/approve").status_code == 200

        body = client.get("/subtitles", params={"q": "movie"}).json()
        assert body["total"] == 1
        item = body["items"][0]
        assert item["id"] == subtitle_id
        assert item["status"] == "approved"
        assert item["uploader"] == "testuser"
        assert item["donationLink"] == "https://ko-fi.com/test"

    def test_mine_lists_pending_and_approved(self, client, caller) -> None:
        approved_id = _submit(client, "Old")
        pending_id = _submit(client, "New")
        caller.become("admin1")
        client.post(f"/admin/pending/{approved_id}/approve")
        caller.become("u1")

        body = client.get("/subtitles/mine").json()

        assert [item["id"] for item in body["items"]] == [pending_id, approved_id]


class TestAdminRoutes:
    def test_non_admin_gets_403_everywhere(self, client, store) -> None:
        subtitle_id = _submit(client)

        assert client.get("/admin/pending").status_code == 403
        assert client.post(f"/admin/pending/{subtitle_id}/approve").status_code == 403
        assert client.delete(f"/admin/pending/{subtitle_id}").status_code == 403
        assert store.ids(SubtitleStatus.PENDING) == {subtitle_id}

    def test_admin_lists_pending(self, client, caller) -> None:
        subtitle_id = _submit(client)
        caller.become("admin1")

        body = client.get("/admin/pending").json()

        assert [item["id"] for item in body["items"]] == [subtitle_id]
        assert body["items"][0]["status"] == "pending"

    def test_reject_then_reject_again_is_404(self, client, caller) -> None:
        subtitle_id = _submit(client)
        caller.become("admin1")

        assert client.delete(f"/admin/pending/{subtitle_id}").status_code == 204
        assert client.delete(f"/admin/pending/{subtitle_id}").status_code == 404

    def test_approve_unknown_id_is_404(self, client, caller) -> None:
        caller.become("admin1")
        assert client.post("/admin/pending/missing/approve").status_code == 404

    def test_cache_refresh_needs_mirrored_backend(self, client, caller) -> None:
        caller.become("admin1")
        assert client.post("/admin/cache/refresh").status_code == 409


class PrivateBucketStub(BlobStore):
    """Private bucket: uploads return the bare key, reads get a signed URL."""

    def __init__(self) -> None:
        self.uploaded: dict[str, bytes] = {}

    def upload_bytes(self, object_key: str, data: bytes, content_type: str = "application/x-subrip") -> str:
        self.uploaded[object_key] = data
        return object_key

    def generate_signed_get_url(self, object_key: str, expires_seconds: int = 3600) -> str:
        return f"https://signed.example.com/{object_key}"

    def delete_object(self, object_key: str) -> bool:
        return self.uploaded.pop(object_key, None) is not None


class TestUploadRoute:
    def test_upload_stores_key_and_serves_signed_url(self, client, caller, store) -> None:
        blobs = PrivateBucketStub()
        app.dependency_overrides[get_blob_store] = lambda: blobs

        res = client.post(
            "/subtitles/upload",
            data={"title": "Movie A", "donationLink": "https://ko-fi.com/test"},
            files={"srtFile": ("movie.srt", SRT.encode(), "application/x-subrip")},
        )

        assert res.status_code == 201
        subtitle_id = res.json()["id"]
        [key] = blobs.uploaded
        assert store.partitions[SubtitleStatus.PENDING][subtitle_id].file_url == key

        caller.become("admin1")
        item = client.get("/admin/pending").json()["items"][0]
        assert item["fileUrl"] == f"https://signed.example.com/{key}"

    def test_empty_file_is_422(self, client, store) -> None:
        app.dependency_overrides[get_blob_store] = lambda: PrivateBucketStub()

        res = client.post(
            "/subtitles/upload",
            data={"title": "Movie A"},
            files={"srtFile": ("movie.srt", b"", "application/x-subrip")},
        )

        assert res.status_code == 422
        assert store.ids(SubtitleStatus.PENDING) == set()

    def test_upload_without_blob_store_is_500(self, client, store) -> None:
        res = client.post(
            "/subtitles/upload",
            data={"title": "Movie A"},
            files={"srtFile": ("movie.srt", SRT.encode(), "application/x-subrip")},
        )

        assert res.status_code == 500
        assert store.ids(SubtitleStatus.PENDING) == set()
