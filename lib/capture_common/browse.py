"""
Browsing the capture library: paged listing and filter facets.

Listing is unranked. Captures are filtered by status, source type, topic and a
plain substring search, then ordered by capture time, newest first. Facets
count source types, topics and disciplines over complete captures so a client
can offer only the filters that will return something.
"""

import logging
from collections import Counter
from typing import Any

from capture_common.constants import DEFAULT_SEARCH_LIMIT
from capture_common.exceptions import ValidationError
from capture_common.models import CaptureStatus, SourceType
from capture_common.records import CaptureRepository
from capture_common.search import SearchResults, validate_paging

logger = logging.getLogger(__name__)

# Listing search skips the generated summary
BROWSE_SEARCH_FIELDS = ("title", "description", "body_text")


def _parse_enum(value: str | None, enum_cls, name: str):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{name} must be one of: {allowed}") from e


def list_items(
    repository: CaptureRepository,
    page: Any = 1,
    limit: Any = DEFAULT_SEARCH_LIMIT,
    status: str | None = None,
    source_type: str | None = None,
    topic: str | None = None,
    search: str | None = None,
) -> SearchResults:
    """
    One page of captures, newest capture first.

    status defaults to complete. total is the exact count of matches.

    Raises:
        ValidationError: On bad paging, status or source type
    """
    page, limit = validate_paging(page, limit)
    capture_status = _parse_enum(status, CaptureStatus, "status") or CaptureStatus.COMPLETE
    source = _parse_enum(source_type, SourceType, "source_type")
    search = (search or "").strip()

    items, count = repository.list_captures(
        status=capture_status,
        keywords=[search] if search else None,
        source_types=[source] if source else None,
        topic=topic or None,
        offset=(page - 1) * limit,
        limit=limit,
        search_fields=BROWSE_SEARCH_FIELDS,
        order_by="captured_at",
    )
    return SearchResults(items=items, total=count, page=page, limit=limit)


def _by_count(counts: Counter) -> list[dict[str, Any]]:
    # most_common keeps first-seen order among equal counts
    return [{"name": name, "count": count} for name, count in counts.most_common()]


def capture_facets(repository: CaptureRepository) -> dict[str, Any]:
    """
    Source type, topic and discipline counts over complete captures.

    Each facet is a list of {"name", "count"} sorted by count, descending.
    """
    records, total = repository.list_captures(status=CaptureStatus.COMPLETE)

    source_types: Counter = Counter()
    topics: Counter = Counter()
    disciplines: Counter = Counter()
    for record in records:
        source_types[record.source_type.value] += 1
        topics.update(record.topics)
        disciplines.update(record.disciplines)

    logger.info(
        f"Facets over {total} captures: {len(source_types)} source types, "
        f"{len(topics)} topics, {len(disciplines)} disciplines"
    )
    return {
        "sourceTypes": _by_count(source_types),
        "topics": _by_count(topics),
        "disciplines": _by_count(disciplines),
        "totalItems": total,
    }
