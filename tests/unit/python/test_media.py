"""Unit tests for media materialization and thumbnail selection."""

import base64
import io
from unittest.mock import MagicMock

import httpx
import pytest
from PIL import Image

from capture_common.media import (
    MediaMaterializer,
    decode_data_uri,
    image_path,
    screenshot_path,
    select_thumbnail,
)
from capture_common.models import MediaAsset, VideoAsset
from capture_common.scraper.fetcher import HttpFetcher


def png_bytes(width=320, height=240) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color="blue").save(buffer, format="PNG")
    return buffer.getvalue()


def make_materializer(handler, blob_store=None):
    if blob_store is None:
        blob_store = MagicMock()
        blob_store.upload.side_effect = lambda path, body, content_type: f"https://media.example.com/{path}"
    fetcher = HttpFetcher(client=httpx.Client(transport=httpx.MockTransport(handler)))
    return MediaMaterializer(blob_store, fetcher=fetcher, max_workers=2), blob_store


class TestPaths:
    """Tests for storage path helpers."""

    def test_paths(self):
        assert image_path("abc", 2, ".png") == "captures/abc/images/2.png"
        assert screenshot_path("abc") == "captures/abc/screenshot.png"
        assert screenshot_path("abc", ".jpg") == "captures/abc/screenshot.jpg"

    def test_decode_data_uri(self):
        body, content_type = decode_data_uri("data:image/jpeg;base64," + base64.b64encode(b"xyz").decode())
        assert body == b"xyz"
        assert content_type == "image/jpeg"

    def test_decode_data_uri_rejects_plain(self):
        with pytest.raises(ValueError):
            decode_data_uri("data:text/plain,hello")


class TestMediaMaterializer:
    """Tests for MediaMaterializer."""

    def test_reachable_image_is_rehosted(self):
        body = png_bytes()
        materializer, blob_store = make_materializer(
            lambda request: httpx.Response(200, content=body, headers={"content-type": "image/png"})
        )

        result = materializer.materialize_image("cap1", 0, MediaAsset(original_url="https://cdn/a"))

        assert result.storage_path == "captures/cap1/images/0.png"
        assert result.public_url == "https://media.example.com/captures/cap1/images/0.png"
        assert (result.width, result.height) == (320, 240)
        blob_store.upload.assert_called_once_with("captures/cap1/images/0.png", body, "image/png")

    def test_declared_dimensions_are_kept(self):
        materializer, _ = make_materializer(
            lambda request: httpx.Response(200, content=png_bytes(), headers={"content-type": "image/png"})
        )
        result = materializer.materialize_image(
            "cap1", 0, MediaAsset(original_url="https://cdn/a", width=1000, height=500)
        )
        assert (result.width, result.height) == (1000, 500)

    def test_unreachable_image_keeps_original(self):
        materializer, blob_store = make_materializer(lambda request: httpx.Response(404))
        original = MediaAsset(original_url="https://cdn/missing.jpg", alt="x")

        result = materializer.materialize_image("cap1", 0, original)

        assert result == original
        assert not result.materialized
        blob_store.upload.assert_not_called()

    def test_upload_failure_keeps_original(self):
        blob_store = MagicMock()
        blob_store.upload.side_effect = RuntimeError("S3 down")
        materializer, _ = make_materializer(
            lambda request: httpx.Response(200, content=b"bytes", headers={"content-type": "image/jpeg"}),
            blob_store=blob_store,
        )
        result = materializer.materialize_image("cap1", 0, MediaAsset(original_url="https://cdn/a.jpg"))
        assert result.public_url is None

    def test_content_type_sniffed_when_missing(self):
        materializer, blob_store = make_materializer(
            lambda request: httpx.Response(
                200, content=png_bytes(), headers={"content-type": "application/octet-stream"}
            )
        )
        result = materializer.materialize_image("cap1", 3, MediaAsset(original_url="https://cdn/a"))
        assert result.storage_path == "captures/cap1/images/3.png"

    def test_materialize_preserves_order_and_count(self):
        def handler(request):
            if "bad" in str(request.url):
                return httpx.Response(500)
            return httpx.Response(200, content=png_bytes(), headers={"content-type": "image/png"})

        materializer, _ = make_materializer(handler)
        images = [
            MediaAsset(original_url="https://cdn/0.png"),
            MediaAsset(original_url="https://cdn/bad.png"),
            MediaAsset(original_url="https://cdn/2.png"),
        ]
        videos = [VideoAsset(original_url="https://v/1.mp4", duration=3.0), VideoAsset(original_url="")]

        result = materializer.materialize("cap1", images, videos)

        assert [i.original_url for i in result.images] == [i.original_url for i in images]
        assert [i.materialized for i in result.images] == [True, False, True]
        assert result.images[2].storage_path == "captures/cap1/images/2.png"
        assert result.degraded_count == 1
        assert len(result.videos) == 1
        assert result.screenshot is None

    def test_inline_screenshot_is_uploaded(self):
        materializer, blob_store = make_materializer(lambda request: httpx.Response(500))
        data_uri = "data:image/png;base64," + base64.b64encode(png_bytes()).decode()

        url = materializer.materialize_screenshot("cap1", data_uri)

        assert url == "https://media.example.com/captures/cap1/screenshot.png"
        assert blob_store.upload.call_args[0][0] == "captures/cap1/screenshot.png"

    def test_remote_jpeg_screenshot_keeps_its_extension(self):
        def handler(request):
            return httpx.Response(200, content=b"\xff\xd8\xff\xe0jpeg", headers={"content-type": "image/jpeg"})

        materializer, blob_store = make_materializer(handler)

        url = materializer.materialize_screenshot("cap1", "https://shots.example.com/1")

        assert url == "https://media.example.com/captures/cap1/screenshot.jpg"
        path, _, content_type = blob_store.upload.call_args[0]
        assert path == "captures/cap1/screenshot.jpg"
        assert content_type == "image/jpeg"

    def test_inline_jpeg_screenshot_keeps_its_extension(self):
        materializer, blob_store = make_materializer(lambda request: httpx.Response(500))
        data_uri = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff\xe0jpeg").decode()

        materializer.materialize_screenshot("cap1", data_uri)

        assert blob_store.upload.call_args[0][0] == "captures/cap1/screenshot.jpg"

    def test_remote_screenshot_kept_when_download_fails(self):
        materializer, _ = make_materializer(lambda request: httpx.Response(500))
        assert materializer.materialize_screenshot("cap1", "https://kv/shot.png") == "https://kv/shot.png"

    def test_broken_inline_screenshot_dropped(self):
        materializer, _ = make_materializer(lambda request: httpx.Response(500))
        assert materializer.materialize_screenshot("cap1", "data:image/png,notbase64") is None


class TestSelectThumbnail:
    """Tests for select_thumbnail."""

    def test_prefers_large_materialized(self):
        images = [
            MediaAsset(original_url="https://cdn/remote.jpg", width=800, height=800),
            MediaAsset(original_url="https://cdn/small.jpg", public_url="https://m/small.jpg", width=50, height=50),
            MediaAsset(original_url="https://cdn/big.jpg", public_url="https://m/big.jpg", width=640, height=480),
        ]
        assert select_thumbnail(images, []) == "https://m/big.jpg"

    def test_large_remote_over_small_materialized(self):
        images = [
            MediaAsset(original_url="https://cdn/small.jpg", public_url="https://m/small.jpg", width=50, height=50),
            MediaAsset(original_url="https://cdn/remote.jpg"),
        ]
        assert select_thumbnail(images, []) == "https://cdn/remote.jpg"

    def test_small_materialized_over_small_remote(self):
        images = [
            MediaAsset(original_url="https://cdn/tiny.jpg", width=10, height=10),
            MediaAsset(original_url="https://cdn/small.jpg", public_url="https://m/small.jpg", width=50, height=50),
        ]
        assert select_thumbnail(images, []) == "https://m/small.jpg"

    def test_video_thumbnail_when_no_images(self):
        videos = [VideoAsset(original_url="https://v/1.mp4", thumbnail="https://v/1.jpg")]
        assert select_thumbnail([], videos) == "https://v/1.jpg"

    def test_nothing(self):
        assert select_thumbnail([], []) is None
