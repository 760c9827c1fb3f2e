"""
Search over completed captures.

Intent search:
1. Extract a SearchIntent from the query with Bedrock (token fallback on failure)
2. List complete captures matching any keyword, narrowed by type filters
3. Score: base 100 - position, plus per-keyword title/description/summary
   bonuses and per-topic bonuses
4. Sort by score and paginate

The base score depends on the position within the fetched page, so rankings
are not comparable across page boundaries.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any

from capture_common.bedrock import BedrockClient
from capture_common.constants import (
    DEFAULT_SEARCH_LIMIT,
    DESCRIPTION_MATCH_BONUS,
    MAX_SEARCH_KEYWORDS,
    MAX_SEARCH_LIMIT,
    MIN_FALLBACK_KEYWORD_LENGTH,
    SEARCH_BASE_SCORE,
    SUMMARY_MATCH_BONUS,
    TITLE_MATCH_BONUS,
    TOPIC_MATCH_BONUS,
)
from capture_common.exceptions import SearchIntentDegraded, ValidationError
from capture_common.models import (
    CaptureRecord,
    CaptureStatus,
    ContentType,
    SearchIntent,
    SearchStrategy,
    SourceType,
)
from capture_common.prompts import SEARCH_SYSTEM_PROMPT, SEARCH_USER_PROMPT, parse_model_json
from capture_common.records import CaptureRepository

logger = logging.getLogger(__name__)


def fallback_intent(query: str) -> SearchIntent:
    """Whitespace tokens longer than two characters, no taxonomy, broad strategy."""
    keywords = [token for token in query.split() if len(token) >= MIN_FALLBACK_KEYWORD_LENGTH]
    return SearchIntent(keywords=keywords[:MAX_SEARCH_KEYWORDS], strategy=SearchStrategy.BROAD)


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _enum_values(value: Any, enum_cls) -> list:
    """Keep only values that belong to the enum; unknown ones are dropped."""
    valid = []
    for item in _strings(value):
        try:
            member = enum_cls(item.lower())
        except ValueError:
            logger.debug(f"Dropping unknown {enum_cls.__name__} value: {item}")
            continue
        if member not in valid:
            valid.append(member)
    return valid


def parse_intent(text: str, query: str) -> SearchIntent:
    """
    Validate a model reply into a SearchIntent.

    Raises:
        SearchIntentDegraded: If the reply isn't a JSON object
    """
    try:
        parsed = parse_model_json(text)
    except ValueError as e:
        raise SearchIntentDegraded(str(e)) from e

    keywords = _strings(parsed.get("keywords"))[:MAX_SEARCH_KEYWORDS]
    if not keywords:
        keywords = fallback_intent(query).keywords

    strategy_value = parsed.get("searchStrategy")
    try:
        strategy = SearchStrategy(str(strategy_value).lower())
    except ValueError:
        strategy = SearchStrategy.BROAD

    return SearchIntent(
        keywords=keywords,
        topics=_strings(parsed.get("topics")),
        use_cases=_strings(parsed.get("useCases")),
        source_types=_enum_values(parsed.get("sourceTypes"), SourceType),
        content_types=_enum_values(parsed.get("contentTypes"), ContentType),
        strategy=strategy,
    )


class SearchIntentExtractor:
    """
    Turns a free-text query into a SearchIntent.

    Usage:
        extractor = SearchIntentExtractor(bedrock_client, model_id)
        intent, degraded = extractor.extract("design systems for startups")
    """

    def __init__(self, bedrock_client: BedrockClient, model_id: str):
        self.bedrock_client = bedrock_client
        self.model_id = model_id

    def extract(self, query: str) -> tuple[SearchIntent, bool]:
        """
        Extract search intent.

        Returns:
            Tuple of (intent, degraded). degraded is True when the fallback was used.
        """
        start = time.time()
        try:
            try:
                text = self.bedrock_client.generate_text(
                    model_id=self.model_id,
                    system_prompt=SEARCH_SYSTEM_PROMPT,
                    user_prompt=SEARCH_USER_PROMPT.format(query=query.replace('"', "'")),
                    max_tokens=300,
                    context="search_intent",
                )
            except Exception as e:
                raise SearchIntentDegraded(f"Model call failed: {e}") from e
            intent = parse_intent(text, query)
        except SearchIntentDegraded as e:
            logger.warning(f"Search intent degraded, using token fallback: {e}")
            return fallback_intent(query), True

        logger.info(
            f"Search intent for {query!r}: {intent.to_dict()} "
            f"in {(time.time() - start) * 1000:.0f}ms"
        )
        return intent, False


def score_capture(record: CaptureRecord, index: int, intent: SearchIntent) -> int:
    """Relevance score of one candidate at a position in store ordering."""
    score = SEARCH_BASE_SCORE - index
    title = (record.title or "").lower()
    description = (record.description or "").lower()
    summary = (record.summary or "").lower()

    for keyword in (k.lower() for k in intent.keywords):
        if keyword in title:
            score += TITLE_MATCH_BONUS
        if keyword in description:
            score += DESCRIPTION_MATCH_BONUS
        if keyword in summary:
            score += SUMMARY_MATCH_BONUS

    record_topics = {t.lower() for t in record.topics}
    score += TOPIC_MATCH_BONUS * sum(1 for t in intent.topics if t.lower() in record_topics)
    return score


def rank_captures(records: list[CaptureRecord], intent: SearchIntent) -> list[CaptureRecord]:
    """Sort candidates by descending score; ties keep store order."""
    scored = [(score_capture(record, i, intent), record) for i, record in enumerate(records)]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [record for _, record in scored]


@dataclass
class SearchResults:
    items: list[CaptureRecord]
    total: int
    page: int
    limit: int
    intent: SearchIntent | None = None
    degraded: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "items": [record.to_dict() for record in self.items],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }
        if self.intent is not None:
            data["intent"] = self.intent.to_dict()
        return data


def validate_paging(page: Any, limit: Any) -> tuple[int, int]:
    """
    Coerce and check page/limit.

    Raises:
        ValidationError: If either is not a positive integer or limit is too large
    """
    try:
        page = int(page if page is not None else 1)
        limit = int(limit if limit is not None else DEFAULT_SEARCH_LIMIT)
    except (TypeError, ValueError) as e:
        raise ValidationError("page and limit must be integers") from e
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1 or limit > MAX_SEARCH_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_SEARCH_LIMIT}")
    return page, limit


def search_captures(
    query: str,
    repository: CaptureRepository,
    extractor: SearchIntentExtractor,
    page: int = 1,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> SearchResults:
    """
    Intent-driven search with scoring.

    total is max(store count, re-ranked set size).
    """
    if not query or not query.strip():
        raise ValidationError("Query is required")
    page, limit = validate_paging(page, limit)

    intent, degraded = extractor.extract(query.strip())
    candidates, count = repository.list_captures(
        status=CaptureStatus.COMPLETE,
        keywords=intent.keywords,
        source_types=intent.source_types,
        content_types=intent.content_types,
        offset=(page - 1) * limit,
        limit=limit,
    )
    ranked = rank_captures(candidates, intent)[:limit]

    return SearchResults(
        items=ranked,
        total=max(count, len(ranked)),
        page=page,
        limit=limit,
        intent=intent,
        degraded=degraded,
    )


def basic_search(
    query: str,
    repository: CaptureRepository,
    page: int = 1,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> SearchResults:
    """Plain substring search for the whole query in store order, no model call."""
    if not query or not query.strip():
        raise ValidationError("Query parameter q is required")
    page, limit = validate_paging(page, limit)

    items, count = repository.list_captures(
        status=CaptureStatus.COMPLETE,
        keywords=[query.strip()],
        offset=(page - 1) * limit,
        limit=limit,
    )
    return SearchResults(items=items, total=count, page=page, limit=limit)
