from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from subflix.app.domain.errors import BlobStoreError, BlobUploadError
from subflix.app.infra.storage.r2_provider import R2BlobStore


def _store(public_url: str = "https://cdn.example.com") -> tuple[R2BlobStore, MagicMock]:
    client = MagicMock()
    store = R2BlobStore(
        account_id="acct",
        access_key_id="key",
        secret_access_key="secret",
        bucket_name="subs",
        public_url=public_url,
        client=client,
    )
    return store, client


def _client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "500", "Message": "Internal"}}, operation)


class TestUploadBytes:
    def test_returns_public_url_when_configured(self) -> None:
        store, client = _store()

        url = store.upload_bytes("subtitles/1-Movie_A.srt", b"1\nHi")

        assert url == "https://cdn.example.com/subtitles/1-Movie_A.srt"
        client.put_object.assert_called_once_with(
            Bucket="subs",
            Key="subtitles/1-Movie_A.srt",
            Body=b"1\nHi",
            ContentType="application/x-subrip",
        )

    def test_private_bucket_returns_object_key_not_expiring_url(self) -> None:
        store, client = _store(public_url="")
        store.public_url = ""

        reference = store.upload_bytes("subtitles/1-Movie_A.srt", b"1\nHi")

        assert reference == "subtitles/1-Movie_A.srt"
        client.generate_presigned_url.assert_not_called()

    def test_client_error_raises_blob_upload_error(self) -> None:
        store, client = _store()
        client.put_object.side_effect = _client_error("PutObject")

        with pytest.raises(BlobUploadError) as exc_info:
            store.upload_bytes("subtitles/1-Movie_A.srt", b"1\nHi")

        assert exc_info.value.object_key == "subtitles/1-Movie_A.srt"


class TestResolveUrl:
    def test_object_key_is_signed_at_read_time(self) -> None:
        store, client = _store(public_url="")
        client.generate_presigned_url.return_value = "https://signed.example.com/x"

        url = store.resolve_url("subtitles/1-Movie_A.srt")

        assert url == "https://signed.example.com/x"
        client.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "subs", "Key": "subtitles/1-Movie_A.srt"},
            ExpiresIn=3600,
        )

    def test_each_read_gets_a_fresh_signature(self) -> None:
        store, client = _store(public_url="")
        client.generate_presigned_url.side_effect = ["https://signed/1", "https://signed/2"]

        assert store.resolve_url("subtitles/1-Movie_A.srt") == "https://signed/1"
        assert store.resolve_url("subtitles/1-Movie_A.srt") == "https://signed/2"

    def test_full_urls_pass_through(self) -> None:
        store, client = _store()

        assert store.resolve_url("https://cdn.example.com/a.srt") == "https://cdn.example.com/a.srt"
        assert store.resolve_url(None) is None
        client.generate_presigned_url.assert_not_called()

    def test_signing_failure_raises_blob_store_error(self) -> None:
        store, client = _store(public_url="")
        client.generate_presigned_url.side_effect = _client_error("GetObject")

        with pytest.raises(BlobStoreError):
            store.resolve_url("subtitles/1-Movie_A.srt")


class TestDeleteObject:
    def test_delete_success(self) -> None:
        store, client = _store()

        assert store.delete_object("subtitles/1-Movie_A.srt") is True
        client.delete_object.assert_called_once_with(Bucket="subs", Key="subtitles/1-Movie_A.srt")

    def test_delete_failure_returns_false(self) -> None:
        store, client = _store()
        client.delete_object.side_effect = _client_error("DeleteObject")

        assert store.delete_object("subtitles/1-Movie_A.srt") is False


class TestGenerateObjectKey:
    def test_whitespace_becomes_underscores(self) -> None:
        store, _ = _store()
        assert store.generate_object_key("Movie A  Part 2", now_ms=1700000000000) == (
            "subtitles/1700000000000-Movie_A_Part_2.srt"
        )

    def test_unsafe_characters_are_dropped(self) -> None:
        store, _ = _store()
        assert store.generate_object_key("A/B: C?", now_ms=1) == "subtitles/1-AB_C.srt"

    def test_empty_title_gets_fallback_name(self) -> None:
        store, _ = _store()
        assert store.generate_object_key("???", now_ms=1) == "subtitles/1-subtitle.srt"
