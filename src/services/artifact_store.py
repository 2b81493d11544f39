"""Download-and-materialize step for generated videos."""

import logging
import uuid
from pathlib import Path
from typing import Optional

import httpx

from models.generation_job import LocalArtifact

logger = logging.getLogger(__name__)

# Returned by the files endpoint when the media download was not requested
METADATA_CONTENT_TYPES = {"application/json", "text/plain", "text/html"}


class DownloadFailed(Exception):
    """Raised when a generated artifact cannot be transferred locally."""


class ArtifactStore:
    """Materializes remote video URIs into local files and releases them.

    The remote locator needs the API key appended as a ``key`` query
    parameter. Every materialized file is tracked until released.
    """

    def __init__(
        self,
        output_dir: str | Path,
        api_key: str,
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the store.

        Args:
            output_dir: Folder for materialized videos (created on demand)
            api_key: Provider API key appended to the download URL
            timeout: Download timeout in seconds
            client: Optional preconfigured HTTP client
        """
        self.output_dir = Path(output_dir)
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._live: dict[Path, LocalArtifact] = {}

    async def materialize(self, uri: str) -> LocalArtifact:
        """Download a video and return a local handle for it.

        Raises:
            DownloadFailed: On a transport error, a non-2xx response, or a
                metadata body instead of video bytes
        """
        try:
            # Keep the locator's own query (alt=media) and add the key to it
            url = httpx.URL(uri).copy_merge_params({"key": self.api_key})
            response = await self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadFailed(f"Failed to download video file: {e}") from e

        if not response.is_success:
            reason = response.reason_phrase or f"HTTP {response.status_code}"
            raise DownloadFailed(f"Failed to download video file: {reason}")

        content_type = response.headers.get("content-type", "video/mp4").split(";")[0]
        if content_type in METADATA_CONTENT_TYPES:
            raise DownloadFailed(
                f"Failed to download video file: got {content_type} instead of video data"
            )

        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{uuid.uuid4().hex}.mp4"
        try:
            path.write_bytes(response.content)
        except OSError as e:
            raise DownloadFailed(f"Failed to store video file: {e}") from e

        artifact = LocalArtifact(
            path=path,
            source_uri=uri,
            content_type=content_type,
            size_bytes=len(response.content),
        )
        self._live[path] = artifact
        logger.info(
            f"Materialized video ({artifact.size_bytes / (1024 * 1024):.1f} MB) to {path.name}"
        )
        return artifact

    def release(self, artifact: LocalArtifact) -> None:
        """Delete a materialized file. Safe to call more than once."""
        self._live.pop(artifact.path, None)
        try:
            artifact.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove artifact {artifact.path}: {e}")

    def release_all(self) -> None:
        for artifact in list(self._live.values()):
            self.release(artifact)

    @property
    def live_count(self) -> int:
        return len(self._live)

    async def close(self) -> None:
        """Release everything and close the HTTP client."""
        self.release_all()
        await self.client.aclose()
