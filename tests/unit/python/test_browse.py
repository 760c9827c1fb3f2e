"""Unit tests for capture listing and filter facets."""

from datetime import UTC, datetime, timedelta

import pytest
from mocks.aws_mock import create_captures_table
from moto import mock_aws

from capture_common.browse import capture_facets, list_items
from capture_common.exceptions import ValidationError
from capture_common.models import CaptureRecord, CaptureStatus, SourceType
from capture_common.records import CaptureRepository

BASE_TIME = datetime(2024, 5, 1, tzinfo=UTC)


def make_record(capture_id, hours, status=CaptureStatus.COMPLETE, **fields):
    captured = BASE_TIME + timedelta(hours=hours)
    return CaptureRecord(
        id=capture_id,
        source_url=f"https://example.com/{capture_id}",
        source_type=fields.pop("source_type", SourceType.WEB),
        status=status,
        captured_at=captured,
        created_at=captured,
        **fields,
    )


@pytest.fixture
def library():
    """Three complete captures, one pending and one failed."""
    with mock_aws():
        repository = CaptureRepository(table=create_captures_table())
        for record in (
            make_record(
                "tokens", 1, title="Design tokens", topics=["Design"], disciplines=["UX/UI"]
            ),
            make_record(
                "thread",
                2,
                source_type=SourceType.TWITTER,
                description="Shipping a startup",
                summary="Design notes",
                topics=["Business", "Design"],
                disciplines=["Product Management"],
            ),
            make_record(
                "reel",
                3,
                source_type=SourceType.INSTAGRAM,
                body_text="Sunset timelapse",
                topics=["Photography"],
                disciplines=["UX/UI"],
            ),
            make_record("queued", 4, status=CaptureStatus.PENDING, title="Design queue"),
            make_record("broken", 5, status=CaptureStatus.FAILED, topics=["Design"]),
        ):
            repository.insert(record)
        yield repository


class TestListItems:
    """Tests for list_items."""

    def test_defaults_to_complete_newest_first(self, library):
        results = list_items(library)

        assert [r.id for r in results.items] == ["reel", "thread", "tokens"]
        assert results.total == 3
        assert results.page == 1
        assert results.limit == 24
        assert "intent" not in results.to_dict()

    def test_status_filter(self, library):
        results = list_items(library, status="pending")
        assert [r.id for r in results.items] == ["queued"]

    def test_source_type_filter(self, library):
        results = list_items(library, source_type="twitter")
        assert [r.id for r in results.items] == ["thread"]

    def test_topic_filter(self, library):
        results = list_items(library, topic="Design")
        assert [r.id for r in results.items] == ["thread", "tokens"]

    def test_search_covers_title_description_and_body(self, library):
        assert [r.id for r in list_items(library, search="SUNSET").items] == ["reel"]
        assert [r.id for r in list_items(library, search="startup").items] == ["thread"]

    def test_search_skips_summary(self, library):
        results = list_items(library, search="design notes")
        assert results.items == []
        assert results.total == 0

    def test_paging_keeps_exact_total(self, library):
        results = list_items(library, page="2", limit="2")

        assert [r.id for r in results.items] == ["tokens"]
        assert results.total == 3
        assert results.total_pages == 2

    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"limit": 101}, {"status": "archived"}, {"source_type": "myspace"}],
    )
    def test_invalid_parameters(self, library, kwargs):
        with pytest.raises(ValidationError):
            list_items(library, **kwargs)


class TestCaptureFacets:
    """Tests for capture_facets."""

    def test_counts_complete_captures(self, library):
        facets = capture_facets(library)

        assert facets["totalItems"] == 3
        assert {f["name"]: f["count"] for f in facets["sourceTypes"]} == {
            "web": 1,
            "twitter": 1,
            "instagram": 1,
        }
        assert facets["topics"][0] == {"name": "Design", "count": 2}
        assert {f["name"] for f in facets["topics"][1:]} == {"Business", "Photography"}
        assert facets["disciplines"] == [
            {"name": "UX/UI", "count": 2},
            {"name": "Product Management", "count": 1},
        ]

    def test_empty_library(self):
        with mock_aws():
            facets = capture_facets(CaptureRepository(table=create_captures_table()))

        assert facets == {"sourceTypes": [], "topics": [], "disciplines": [], "totalItems": 0}
