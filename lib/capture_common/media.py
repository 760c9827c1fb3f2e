"""
Media materialization: rehost scraped images into the blob store.

Images are downloaded concurrently and uploaded under
captures/{capture_id}/images/{index}{ext}. A failed image keeps its original
URL; it is never dropped. Videos keep metadata only.
"""

import base64
import binascii
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace

from capture_common.constants import (
    CAPTURE_PREFIX,
    MEDIA_DOWNLOAD_TIMEOUT,
    MEDIA_DOWNLOAD_WORKERS,
    MIN_THUMBNAIL_DIMENSION,
)
from capture_common.exceptions import MediaMaterializationDegraded
from capture_common.image import extension_for_content_type, read_image_dimensions, sniff_content_type
from capture_common.models import MediaAsset, VideoAsset
from capture_common.scraper.fetcher import FetchError, HttpFetcher
from capture_common.storage import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class MaterializedMedia:
    """Media for one capture after rehosting."""

    images: list[MediaAsset]
    videos: list[VideoAsset]
    screenshot: str | None = None

    @property
    def degraded_count(self) -> int:
        return sum(1 for image in self.images if not image.materialized)


def image_path(capture_id: str, index: int, extension: str) -> str:
    return f"{CAPTURE_PREFIX}/{capture_id}/images/{index}{extension}"


def screenshot_path(capture_id: str, extension: str = ".png") -> str:
    return f"{CAPTURE_PREFIX}/{capture_id}/screenshot{extension}"


def decode_data_uri(data_uri: str) -> tuple[bytes, str]:
    """
    Decode a base64 data: URI.

    Returns:
        Tuple of (bytes, content_type)

    Raises:
        ValueError: If the URI is not base64 or doesn't decode
    """
    header, _, payload = data_uri.partition(",")
    if not header.startswith("data:") or ";base64" not in header or not payload:
        raise ValueError("Not a base64 data URI")
    content_type = header[5:].split(";", 1)[0] or "image/png"
    try:
        return base64.b64decode(payload, validate=False), content_type
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


class MediaMaterializer:
    """
    Downloads media and re-uploads it to stable storage.

    Args:
        blob_store: Destination BlobStore
        fetcher: HttpFetcher for downloads
        max_workers: Concurrent downloads per capture
    """

    def __init__(
        self,
        blob_store: BlobStore,
        fetcher: HttpFetcher | None = None,
        max_workers: int = MEDIA_DOWNLOAD_WORKERS,
    ):
        self.blob_store = blob_store
        self.fetcher = fetcher or HttpFetcher(timeout=MEDIA_DOWNLOAD_TIMEOUT, max_retries=2)
        self.max_workers = max_workers

    def _rehost(self, url: str, path_for) -> tuple[str, str, bytes]:
        """Download url and upload it; path_for maps an extension to the object key."""
        try:
            result = self.fetcher.fetch_bytes(url)
        except FetchError as e:
            raise MediaMaterializationDegraded(e.message) from e

        content_type = result.content_type.split(";", 1)[0].strip().lower()
        if not content_type.startswith("image/"):
            content_type = sniff_content_type(result.content) or "image/jpeg"

        path = path_for(extension_for_content_type(content_type))
        try:
            public_url = self.blob_store.upload(path, result.content, content_type)
        except Exception as e:
            raise MediaMaterializationDegraded(f"Upload failed: {e}") from e
        return path, public_url, result.content

    def materialize_image(self, capture_id: str, index: int, image: MediaAsset) -> MediaAsset:
        """
        Rehost one image.

        Returns:
            The asset with storage_path/public_url set, or the original asset on failure
        """
        try:
            path, public_url, body = self._rehost(
                image.original_url, lambda ext: image_path(capture_id, index, ext)
            )
        except MediaMaterializationDegraded as e:
            logger.warning(f"Keeping original URL for image {index} of {capture_id}: {e}")
            return image

        width, height = image.width, image.height
        if width is None or height is None:
            dimensions = read_image_dimensions(body)
            if dimensions:
                width = width or dimensions[0]
                height = height or dimensions[1]

        return replace(image, storage_path=path, public_url=public_url, width=width, height=height)

    def materialize_images(self, capture_id: str, images: list[MediaAsset]) -> list[MediaAsset]:
        """Rehost images concurrently. Output order equals input order."""
        if not images:
            return []
        workers = max(1, min(self.max_workers, len(images)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(
                executor.map(
                    lambda pair: self.materialize_image(capture_id, pair[0], pair[1]),
                    enumerate(images),
                )
            )

    def materialize_screenshot(self, capture_id: str, screenshot: str | None) -> str | None:
        """
        Store a screenshot.

        Inline data: URIs are decoded and uploaded; remote URLs are downloaded
        and re-uploaded. On failure a remote URL is kept, anything else dropped.
        """
        if not screenshot:
            return None

        try:
            if screenshot.startswith("data:"):
                body, content_type = decode_data_uri(screenshot)
                path = screenshot_path(capture_id, extension_for_content_type(content_type))
                return self.blob_store.upload(path, body, content_type)
            if screenshot.startswith(("http://", "https://")):
                _, public_url, _ = self._rehost(screenshot, lambda ext: screenshot_path(capture_id, ext))
                return public_url
        except (ValueError, MediaMaterializationDegraded) as e:
            logger.warning(f"Screenshot for {capture_id} not rehosted: {e}")
        except Exception as e:
            logger.warning(f"Screenshot upload for {capture_id} failed: {e}")

        if screenshot.startswith(("http://", "https://")):
            return screenshot
        return None

    def materialize(
        self,
        capture_id: str,
        images: list[MediaAsset],
        videos: list[VideoAsset],
        screenshot: str | None = None,
    ) -> MaterializedMedia:
        """Rehost images and screenshot; pass video metadata through."""
        materialized = MaterializedMedia(
            images=self.materialize_images(capture_id, images),
            videos=[
                VideoAsset(original_url=v.original_url, thumbnail=v.thumbnail, duration=v.duration)
                for v in videos
                if v.original_url
            ],
            screenshot=self.materialize_screenshot(capture_id, screenshot),
        )
        logger.info(
            f"Materialized media for {capture_id}: {len(materialized.images)} images "
            f"({materialized.degraded_count} kept original), {len(materialized.videos)} videos"
        )
        return materialized


def _meets_dimension(image: MediaAsset, min_dimension: int) -> bool:
    # Unknown dimensions are given the benefit of the doubt
    if image.width is not None and image.width < min_dimension:
        return False
    if image.height is not None and image.height < min_dimension:
        return False
    return True


def select_thumbnail(
    images: list[MediaAsset],
    videos: list[VideoAsset],
    min_dimension: int = MIN_THUMBNAIL_DIMENSION,
) -> str | None:
    """
    Pick the display thumbnail for a capture.

    Preference: materialized and large enough, then unconfirmed remote and large
    enough, then materialized, then any image, then the first video thumbnail.
    """
    tiers = (
        [i for i in images if i.materialized and _meets_dimension(i, min_dimension)],
        [i for i in images if not i.materialized and _meets_dimension(i, min_dimension)],
        [i for i in images if i.materialized],
        images,
    )
    for tier in tiers:
        if tier:
            return tier[0].display_url

    for video in videos:
        if video.thumbnail:
            return video.thumbnail
    return None
