"""
Categorizer for captured content.

Primary path is one Bedrock call with the taxonomy prompt. Any call or parse
failure falls back to deterministic keyword matching, so categorize() always
returns a result.
"""

import logging
import time
from typing import Any

from capture_common.bedrock import BedrockClient
from capture_common.constants import (
    ARTICLE_BODY_THRESHOLD,
    DEFAULT_DISCIPLINE,
    DEFAULT_SUMMARY,
    DEFAULT_TOPIC,
    DEFAULT_USE_CASE,
    MAX_PROMPT_BODY_LENGTH,
    MAX_SUMMARY_LENGTH,
    MAX_TOPICS,
    MAX_USE_CASES,
)
from capture_common.exceptions import CategorizationDegraded
from capture_common.models import CategorizationResult, ContentType, ExtractedContent, SourceType
from capture_common.prompts import (
    CATEGORIZATION_SYSTEM_PROMPT,
    CATEGORIZATION_USER_PROMPT,
    format_prompt,
    parse_model_json,
)

logger = logging.getLogger(__name__)

# Fallback topic keywords, matched as substrings of the lowercased text
FALLBACK_TOPIC_KEYWORDS = [
    ("AI", ("ai", "artificial intelligence", "machine learning")),
    ("Design", ("design", "ui", "ux")),
    ("Business", ("business", "startup", "company")),
    ("Technology", ("code", "programming", "developer")),
]


def _string_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items[:limit]


def _content_type(value: Any) -> ContentType:
    if isinstance(value, str):
        try:
            return ContentType(value.strip().lower())
        except ValueError:
            pass
    return ContentType.POST


def fallback_topics(content: ExtractedContent) -> list[str]:
    """Keyword-matched topics over title, description and body; never empty."""
    text = " ".join(
        part for part in (content.title, content.description, content.body_text) if part
    ).lower()
    topics = [
        topic
        for topic, keywords in FALLBACK_TOPIC_KEYWORDS
        if any(keyword in text for keyword in keywords)
    ]
    return topics or [DEFAULT_TOPIC]


def fallback_categorization(
    content: ExtractedContent, source_type: SourceType
) -> CategorizationResult:
    """
    Deterministic categorization used when the model is unavailable.

    Content type precedence: image (images, no body) over video over article
    (long web body) over post.
    """
    content_type = ContentType.POST
    if source_type == SourceType.WEB and len(content.body_text or "") > ARTICLE_BODY_THRESHOLD:
        content_type = ContentType.ARTICLE
    if content.videos:
        content_type = ContentType.VIDEO
    if content.images and not content.body_text:
        content_type = ContentType.IMAGE

    summary = content.description or content.title or DEFAULT_SUMMARY
    return CategorizationResult(
        summary=summary[:MAX_SUMMARY_LENGTH],
        topics=fallback_topics(content),
        discipline=DEFAULT_DISCIPLINE,
        use_cases=[DEFAULT_USE_CASE],
        content_type=content_type,
    )


class Categorizer:
    """
    Assigns summary, topics, discipline, use cases and content type.

    Usage:
        categorizer = Categorizer(bedrock_client, model_id)
        result = categorizer.categorize(content, SourceType.WEB, url)
    """

    def __init__(self, bedrock_client: BedrockClient, model_id: str, max_tokens: int = 500):
        self.bedrock_client = bedrock_client
        self.model_id = model_id
        self.max_tokens = max_tokens

    def build_prompt(self, content: ExtractedContent, source_type: SourceType, url: str) -> str:
        body = content.body_text[:MAX_PROMPT_BODY_LENGTH] if content.body_text else None
        return format_prompt(
            CATEGORIZATION_USER_PROMPT,
            source_type=source_type.value,
            url=url,
            title=content.title,
            description=content.description,
            body_text=body,
            author=content.author_name or content.author_handle,
        )

    def parse_response(self, text: str, content: ExtractedContent) -> CategorizationResult:
        """
        Validate and clamp a model reply.

        Raises:
            CategorizationDegraded: If the reply isn't a JSON object
        """
        try:
            parsed = parse_model_json(text)
        except ValueError as e:
            raise CategorizationDegraded(str(e)) from e

        summary = str(parsed.get("summary") or "").strip()
        discipline = parsed.get("discipline")
        return CategorizationResult(
            summary=(summary or content.description or content.title or DEFAULT_SUMMARY)[
                :MAX_SUMMARY_LENGTH
            ],
            topics=_string_list(parsed.get("topics"), MAX_TOPICS) or fallback_topics(content),
            discipline=discipline.strip()
            if isinstance(discipline, str) and discipline.strip()
            else DEFAULT_DISCIPLINE,
            use_cases=_string_list(parsed.get("useCases"), MAX_USE_CASES) or [DEFAULT_USE_CASE],
            content_type=_content_type(parsed.get("contentType")),
        )

    def categorize(
        self, content: ExtractedContent, source_type: SourceType, url: str
    ) -> tuple[CategorizationResult, bool]:
        """
        Categorize content.

        Returns:
            Tuple of (result, degraded). degraded is True when the fallback was used.
        """
        start = time.time()
        try:
            try:
                text = self.bedrock_client.generate_text(
                    model_id=self.model_id,
                    system_prompt=CATEGORIZATION_SYSTEM_PROMPT,
                    user_prompt=self.build_prompt(content, source_type, url),
                    max_tokens=self.max_tokens,
                    context="categorization",
                )
            except Exception as e:
                raise CategorizationDegraded(f"Model call failed: {e}") from e
            result = self.parse_response(text, content)
        except CategorizationDegraded as e:
            logger.warning(f"Categorization degraded for {url}, using keyword fallback: {e}")
            return fallback_categorization(content, source_type), True

        logger.info(
            f"Categorized {url} as {result.content_type.value} "
            f"topics={result.topics} in {(time.time() - start) * 1000:.0f}ms"
        )
        return result, False
