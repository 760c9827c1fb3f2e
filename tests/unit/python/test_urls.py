"""Unit tests for URL normalization and source classification."""

import pytest

from capture_common.exceptions import InvalidUrlError, ValidationError
from capture_common.models import SourceType
from capture_common.urls import classify_source, is_tracking_param, normalize_url, validate_url


class TestNormalizeUrl:
    """Tests for normalize_url."""

    def test_strips_tracking_params(self):
        url = "https://example.com/article?id=5&utm_source=twitter&utm_medium=social&fbclid=abc"
        assert normalize_url(url) == "https://example.com/article?id=5"

    def test_tracking_params_do_not_change_result(self):
        clean = normalize_url("https://example.com/post?page=2")
        tracked = normalize_url("https://example.com/post?page=2&utm_campaign=x&gclid=y&ref=z")
        assert clean == tracked

    def test_lowercases_host_only(self):
        assert normalize_url("HTTPS://Example.COM/Path/Case") == "https://example.com/Path/Case"

    def test_removes_trailing_slash(self):
        assert normalize_url("https://example.com/blog/") == "https://example.com/blog"

    def test_keeps_root_slash(self):
        assert normalize_url("https://example.com/") == "https://example.com/"
        assert normalize_url("https://example.com") == "https://example.com/"

    def test_is_idempotent(self):
        once = normalize_url("https://Example.com/a/?b=1&utm_source=x")
        assert normalize_url(once) == once

    def test_keeps_port_and_fragment(self):
        assert normalize_url("http://example.com:8080/a#frag") == "http://example.com:8080/a#frag"

    def test_keeps_non_tracking_params_in_order(self):
        assert normalize_url("https://example.com/?b=2&a=1") == "https://example.com/?b=2&a=1"

    @pytest.mark.parametrize(
        "url",
        ["", "not a url", "ftp://example.com/file", "javascript:alert(1)", "https://"],
    )
    def test_rejects_invalid(self, url):
        with pytest.raises(InvalidUrlError):
            normalize_url(url)

    def test_invalid_url_is_validation_error(self):
        with pytest.raises(ValidationError):
            normalize_url("mailto:someone@example.com")

    def test_rejects_non_string(self):
        with pytest.raises(InvalidUrlError):
            normalize_url(None)


class TestClassifySource:
    """Tests for classify_source."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://twitter.com/user/status/123", SourceType.TWITTER),
            ("https://x.com/user/status/123", SourceType.TWITTER),
            ("https://mobile.twitter.com/user/status/123", SourceType.TWITTER),
            ("https://www.instagram.com/p/abc123/", SourceType.INSTAGRAM),
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", SourceType.YOUTUBE),
            ("https://youtu.be/dQw4w9WgXcQ", SourceType.YOUTUBE),
            ("https://www.linkedin.com/posts/someone_activity-1", SourceType.LINKEDIN),
            ("https://www.pinterest.com/pin/12345/", SourceType.PINTEREST),
            ("https://pin.it/abc", SourceType.PINTEREST),
            ("https://example.com/article", SourceType.WEB),
        ],
    )
    def test_examples(self, url, expected):
        assert classify_source(url) == expected

    def test_matches_on_label_boundary(self):
        assert classify_source("https://dropbox.com/s/file") == SourceType.WEB
        assert classify_source("https://notyoutube.com/watch") == SourceType.WEB

    def test_unparseable_is_web(self):
        assert classify_source("http://[invalid") == SourceType.WEB


class TestValidateUrl:
    """Tests for validate_url."""

    def test_returns_normalized_and_type(self):
        normalized, source_type = validate_url("https://X.com/jack/status/20?utm_source=app")
        assert normalized == "https://x.com/jack/status/20"
        assert source_type == SourceType.TWITTER


class TestIsTrackingParam:
    """Tests for is_tracking_param."""

    def test_utm_prefix(self):
        assert is_tracking_param("utm_anything")
        assert is_tracking_param("UTM_Source")

    def test_regular_param(self):
        assert not is_tracking_param("id")
        assert not is_tracking_param("v")
