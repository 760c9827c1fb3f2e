"""Prompts and taxonomy for categorization and search intent extraction."""

import json

TOPICS = [
    "Technology", "Design", "Business", "Science", "Culture", "Health", "Finance",
    "Education", "Entertainment", "Politics", "Environment", "Sports", "Art", "Food",
    "Travel", "AI", "Engineering", "Marketing", "Productivity", "Leadership", "Startups",
    "Social Media", "Photography", "Architecture", "Music", "Fashion", "Gaming",
]

DISCIPLINES = [
    "Engineering", "Product", "Marketing", "Research", "Operations", "Creative",
    "Leadership", "Data Science", "UX/UI", "Content", "Sales", "HR", "Legal", "Finance",
    "Strategy", "Development",
]

USE_CASES = {
    "Reference": "Information to look up later",
    "Inspiration": "Creative ideas or motivation",
    "Tutorial": "How-to guides or learning material",
    "Tool": "Software, services, or resources",
    "Case Study": "Real-world examples or stories",
    "News": "Current events or announcements",
    "Opinion": "Perspectives or commentary",
    "Research": "Academic or scientific findings",
    "Template": "Reusable formats or frameworks",
    "Resource": "Collections or curated lists",
    "Entertainment": "Fun or engaging content",
    "Learning": "Educational content for skill building",
}

_USE_CASE_LINES = "\n".join(f"{name} - {meaning}" for name, meaning in USE_CASES.items())

CATEGORIZATION_SYSTEM_PROMPT = f"""You are a content categorization assistant. Your job is to analyze saved web content and extract structured metadata for organization and search.

## Taxonomy

### Topics (select 1-5 most relevant):
{", ".join(TOPICS)}

### Disciplines (select 1 most relevant):
{", ".join(DISCIPLINES)}

### Use Cases (select 1-3):
{_USE_CASE_LINES}

## Instructions
1. Analyze the content carefully
2. Identify the primary subject matter and themes
3. Determine the professional/creative context
4. Consider how someone would use this content in their work or life
5. Generate a concise, informative summary

Return your analysis as valid JSON only, no markdown formatting."""

CATEGORIZATION_USER_PROMPT = """Analyze this content and categorize it:

Source Type: {source_type}
URL: {url}

Title: {title}
Description: {description}

Content:
{body_text}

Author: {author}

Return exactly this JSON structure:
{{
  "summary": "1-2 sentence summary of the content and why it's valuable",
  "topics": ["Topic1", "Topic2"],
  "discipline": "SingleDiscipline",
  "useCases": ["UseCase1", "UseCase2"],
  "contentType": "post|article|thread|image|video"
}}"""

SEARCH_SYSTEM_PROMPT = f"""You are a search intent analyzer for a content archive. The archive contains saved posts from Twitter/X, Instagram, LinkedIn, Pinterest, YouTube, and web articles.

Each item in the archive has:
- title, description, body_text, summary (text fields)
- topics (from: {", ".join(TOPICS)})
- use_cases (from: {", ".join(USE_CASES)})
- source_type: twitter, instagram, linkedin, pinterest, youtube, web
- content_type: post, article, thread, image, video

Given a natural language search query, extract search keywords that would appear in the DESCRIPTION or SUMMARY text of relevant items.

IMPORTANT:
- For keywords, think about what WORDS or PHRASES would literally appear in a description of matching content
- Include the exact terms from the query, plus synonyms and related terms that would appear in descriptions
- Include compound phrases that capture the full concept (e.g. "AI design" not just "AI" and "design" separately)
- Avoid overly generic single words like "tool", "best", "top" - focus on specific concepts
- Keep arrays concise (max 6-8 keywords/phrases)
- Only set sourceTypes or contentTypes when the query explicitly asks for them
- searchStrategy: "exact" for specific lookups, "focused" for topic-based, "broad" for exploratory

Respond with ONLY valid JSON, no markdown or explanation."""

SEARCH_USER_PROMPT = """Search query: "{query}"

Extract the search intent as JSON with this structure:
{{
  "keywords": ["word1", "word2"],
  "topics": ["Topic1", "Topic2"],
  "useCases": ["UseCase1"],
  "sourceTypes": [],
  "contentTypes": [],
  "searchStrategy": "focused"
}}"""


def format_prompt(template: str, **values: str | None) -> str:
    """Fill a prompt template; missing or empty values render as N/A."""
    return template.format(**{key: value or "N/A" for key, value in values.items()})


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_model_json(text: str) -> dict:
    """
    Parse a model reply that should be a JSON object.

    Raises:
        ValueError: If the reply is empty, not JSON, or not an object
    """
    if not text or not text.strip():
        raise ValueError("Empty model response")
    try:
        parsed = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from model: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
