"""Unit tests for intent extraction, scoring and search."""

import json
from unittest.mock import MagicMock

import pytest
from mocks.bedrock_mock import SEARCH_INTENT_REPLY, create_mock_bedrock_client

from capture_common.exceptions import ValidationError
from capture_common.models import (
    CaptureRecord,
    CaptureStatus,
    ContentType,
    SearchIntent,
    SearchStrategy,
    SourceType,
)
from capture_common.search import (
    SearchIntentExtractor,
    basic_search,
    fallback_intent,
    parse_intent,
    rank_captures,
    score_capture,
    search_captures,
    validate_paging,
)


def record(capture_id, title=None, description=None, summary=None, topics=None):
    return CaptureRecord(
        id=capture_id,
        source_url=f"https://example.com/{capture_id}",
        source_type=SourceType.WEB,
        status=CaptureStatus.COMPLETE,
        title=title,
        description=description,
        summary=summary,
        topics=topics or [],
    )


class TestIntentExtraction:
    """Tests for SearchIntentExtractor."""

    def test_model_intent(self):
        bedrock = create_mock_bedrock_client(SEARCH_INTENT_REPLY)
        intent, degraded = SearchIntentExtractor(bedrock, "search-model").extract("design systems")

        assert not degraded
        assert intent.keywords == ["design system", "component library"]
        assert intent.topics == ["Design"]
        assert intent.strategy == SearchStrategy.FOCUSED
        kwargs = bedrock.generate_text.call_args.kwargs
        assert 'Search query: "design systems"' in kwargs["user_prompt"]
        assert kwargs["model_id"] == "search-model"

    def test_model_failure_uses_tokens(self):
        bedrock = create_mock_bedrock_client(RuntimeError("throttled"))
        intent, degraded = SearchIntentExtractor(bedrock, "m").extract("AI in ux design")

        assert degraded
        assert intent.keywords == ["design"]
        assert intent.topics == []
        assert intent.strategy == SearchStrategy.BROAD

    def test_invalid_json_uses_tokens(self):
        bedrock = create_mock_bedrock_client("keywords: design")
        intent, degraded = SearchIntentExtractor(bedrock, "m").extract("great typography")
        assert degraded
        assert intent.keywords == ["great", "typography"]

    def test_filters_validated_against_enums(self):
        reply = json.dumps(
            {
                "keywords": ["k"] * 12,
                "sourceTypes": ["Twitter", "myspace", "twitter"],
                "contentTypes": ["thread", "podcast"],
                "searchStrategy": "aggressive",
            }
        )
        intent = parse_intent(reply, "q")
        assert len(intent.keywords) == 8
        assert intent.source_types == [SourceType.TWITTER]
        assert intent.content_types == [ContentType.THREAD]
        assert intent.strategy == SearchStrategy.BROAD

    def test_empty_keywords_use_tokens(self):
        intent = parse_intent(json.dumps({"keywords": []}), "python tooling")
        assert intent.keywords == ["python", "tooling"]

    def test_fallback_caps_keywords(self):
        query = " ".join(f"word{n}" for n in range(12))
        assert len(fallback_intent(query).keywords) == 8


class TestScoring:
    """Tests for relevance scoring."""

    def test_base_score_by_position(self):
        intent = SearchIntent(keywords=["zzz"])
        assert score_capture(record("a"), 0, intent) == 100
        assert score_capture(record("a"), 7, intent) == 93

    def test_field_bonuses_are_additive(self):
        intent = SearchIntent(keywords=["design"])
        match = record("a", title="Design", description="design notes", summary="about DESIGN")
        assert score_capture(match, 0, intent) == 100 + 25 + 15 + 10

    def test_topic_bonus_exact_case_insensitive(self):
        intent = SearchIntent(keywords=[], topics=["design", "AI", "Art"])
        match = record("a", topics=["Design", "AI", "Artificial"])
        assert score_capture(match, 0, intent) == 100 + 5 + 5

    def test_title_match_outranks_body_only_match(self):
        intent = SearchIntent(keywords=["typography"])
        body_only = record("body", description="unrelated")
        title_match = record("title", title="Typography basics")

        ranked = rank_captures([body_only, title_match], intent)

        assert [r.id for r in ranked] == ["title", "body"]

    def test_ties_keep_store_order(self):
        intent = SearchIntent(keywords=["x"])
        items = [record("a", title="x"), record("b"), record("c", title="x")]
        # a: 125, b: 99, c: 123
        assert [r.id for r in rank_captures(items, intent)] == ["a", "c", "b"]


class TestValidatePaging:
    """Tests for validate_paging."""

    def test_defaults(self):
        assert validate_paging(None, None) == (1, 24)

    def test_coerces_strings(self):
        assert validate_paging("2", "10") == (2, 10)

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101), ("x", 10)])
    def test_rejects(self, page, limit):
        with pytest.raises(ValidationError):
            validate_paging(page, limit)


class TestSearchCaptures:
    """Tests for search_captures and basic_search."""

    def test_intent_search(self):
        repository = MagicMock()
        repository.list_captures.return_value = (
            [record("old", description="design system tips"), record("new", title="Design system guide")],
            30,
        )
        extractor = MagicMock()
        extractor.extract.return_value = (
            SearchIntent(keywords=["design system"], source_types=[SourceType.WEB]),
            False,
        )

        results = search_captures("design systems", repository, extractor, page=2, limit=10)

        repository.list_captures.assert_called_once_with(
            status=CaptureStatus.COMPLETE,
            keywords=["design system"],
            source_types=[SourceType.WEB],
            content_types=[],
            offset=10,
            limit=10,
        )
        assert [r.id for r in results.items] == ["new", "old"]
        assert results.total == 30
        assert results.total_pages == 3

        data = results.to_dict()
        assert data["totalPages"] == 3
        assert data["page"] == 2
        assert data["intent"]["keywords"] == ["design system"]
        assert data["items"][0]["id"] == "new"

    def test_total_is_at_least_ranked_size(self):
        repository = MagicMock()
        repository.list_captures.return_value = ([record("a"), record("b")], 0)
        extractor = MagicMock()
        extractor.extract.return_value = (SearchIntent(keywords=["a"]), True)

        results = search_captures("a thing", repository, extractor, limit=5)

        assert results.total == 2
        assert results.total_pages == 1
        assert results.degraded

    def test_empty_query_rejected(self):
        with pytest.raises(ValidationError):
            search_captures("  ", MagicMock(), MagicMock())

    def test_basic_search(self):
        repository = MagicMock()
        repository.list_captures.return_value = ([record("a")], 1)

        results = basic_search(" design ", repository, page=1, limit=24)

        repository.list_captures.assert_called_once_with(
            status=CaptureStatus.COMPLETE, keywords=["design"], offset=0, limit=24
        )
        assert results.total == 1
        assert "intent" not in results.to_dict()
