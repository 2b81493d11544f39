"""Unit tests for ArtifactStore using httpx.MockTransport."""

import httpx
import pytest

from services.artifact_store import ArtifactStore, DownloadFailed

VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media"


def make_store(tmp_path, handler) -> ArtifactStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ArtifactStore(tmp_path / "artifacts", api_key="secret-key", client=client)


class TestMaterialize:
    @pytest.mark.asyncio
    async def test_downloads_with_api_key_and_writes_file(self, tmp_path):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(
                200, content=b"mp4-bytes", headers={"content-type": "video/mp4"}
            )

        store = make_store(tmp_path, handler)

        artifact = await store.materialize(VIDEO_URI)

        assert seen[0].params["key"] == "secret-key"
        assert seen[0].params["alt"] == "media"
        assert artifact.path.read_bytes() == b"mp4-bytes"
        assert artifact.size_bytes == len(b"mp4-bytes")
        assert artifact.source_uri == VIDEO_URI
        assert artifact.handle.startswith("file://")
        assert store.live_count == 1
        await store.close()

    @pytest.mark.asyncio
    async def test_non_success_status_raises_download_failed(self, tmp_path):
        store = make_store(tmp_path, lambda request: httpx.Response(403))

        with pytest.raises(DownloadFailed, match="Forbidden"):
            await store.materialize(VIDEO_URI)

        assert store.live_count == 0
        await store.close()

    @pytest.mark.asyncio
    async def test_existing_query_is_kept_when_key_is_added(self, tmp_path):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, content=b"mp4-bytes")

        store = make_store(tmp_path, handler)

        await store.materialize(VIDEO_URI)

        assert seen == [VIDEO_URI + "&key=secret-key"]
        await store.close()

    @pytest.mark.asyncio
    async def test_metadata_body_is_not_saved_as_video(self, tmp_path):
        store = make_store(
            tmp_path,
            lambda request: httpx.Response(200, json={"name": "files/abc", "mimeType": "video/mp4"}),
        )

        with pytest.raises(DownloadFailed, match="application/json"):
            await store.materialize(VIDEO_URI)

        assert store.live_count == 0
        assert not (tmp_path / "artifacts").exists() or not any((tmp_path / "artifacts").iterdir())
        await store.close()

    @pytest.mark.asyncio
    async def test_transport_error_raises_download_failed(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = make_store(tmp_path, handler)

        with pytest.raises(DownloadFailed):
            await store.materialize(VIDEO_URI)
        await store.close()


class TestRelease:
    @pytest.mark.asyncio
    async def test_release_deletes_file_and_is_idempotent(self, tmp_path):
        store = make_store(tmp_path, lambda request: httpx.Response(200, content=b"x"))
        artifact = await store.materialize(VIDEO_URI)

        store.release(artifact)
        store.release(artifact)

        assert not artifact.path.exists()
        assert store.live_count == 0
        await store.close()

    @pytest.mark.asyncio
    async def test_close_releases_everything(self, tmp_path):
        store = make_store(tmp_path, lambda request: httpx.Response(200, content=b"x"))
        first = await store.materialize(VIDEO_URI)
        second = await store.materialize(VIDEO_URI)

        await store.close()

        assert not first.path.exists()
        assert not second.path.exists()
