"""Unit tests for log masking helpers."""

from capture_common.logging_utils import log_summary, mask_value, safe_log_event


class TestMaskValue:
    """Tests for mask_value."""

    def test_long_secret_keeps_prefix(self):
        token = "apify_api_" + "x" * 30
        assert mask_value("apify_token", token) == "apify_...(40 chars)"

    def test_short_secret_fully_masked(self):
        assert mask_value("password", "hunter2") == "***"

    def test_containers_under_sensitive_key(self):
        assert mask_value("credentials", {"a": 1}) == "[dict: masked]"

    def test_recurses_into_nested_values(self):
        event = {"body": {"url": "https://e.com", "notes": "private thoughts"}}
        assert mask_value("event", event) == {
            "body": {"url": "https://e.com", "notes": "***"}
        }

    def test_plain_values_untouched(self):
        assert mask_value("url", "https://example.com/") == "https://example.com/"


class TestSafeLogEvent:
    """Tests for safe_log_event."""

    def test_masks_channel_message_text(self):
        event = {
            "url": "https://x.com/a/status/1",
            "channelContext": {"messageId": "m1", "messageText": "look at this cool thing"},
        }
        masked = safe_log_event(event)
        assert masked["url"] == event["url"]
        assert masked["channelContext"]["messageId"] == "m1"
        assert masked["channelContext"]["messageText"] == "look a...(23 chars)"

    def test_non_dict_event(self):
        assert safe_log_event("raw") == {"_raw": "raw"}


class TestLogSummary:
    """Tests for log_summary."""

    def test_primitives_and_sequences(self):
        summary = log_summary(
            "process_capture",
            duration_ms=12.3456,
            capture_id="c1",
            images=["a", "b"],
            ignored={"nested": True},
        )
        assert summary == {
            "operation": "process_capture",
            "success": True,
            "duration_ms": 12.35,
            "capture_id": "c1",
            "images": 2,
        }

    def test_error_truncated(self):
        summary = log_summary("submit", success=False, error="e" * 900, item_count=0)
        assert len(summary["error"]) == 500
        assert summary["item_count"] == 0
        assert summary["success"] is False
