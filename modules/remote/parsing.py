"""Turn discovery responses into prompt records and citation sources."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

SECTION_DELIMITER = "---"
DEFAULT_TITLE = "Style Trace"
DEFAULT_TAGS = ("Web Source",)
DEFAULT_SOURCE_LABEL = "Global Crawl"
DEFAULT_CITATION_TITLE = "External Source"
DEFAULT_CITATION_URI = "#"

# A value may start on the next line, but never swallows the following label.
_NEXT_LABEL = r"(?!\**(?:TITLE|PROMPT|TAGS):)"
_TITLE_PATTERN = re.compile(r"TITLE:\s*" + _NEXT_LABEL + r"(.*)", re.IGNORECASE)
_PROMPT_PATTERN = re.compile(r"PROMPT:\s*" + _NEXT_LABEL + r"(.*)", re.IGNORECASE)
_TAGS_PATTERN = re.compile(r"TAGS:\s*" + _NEXT_LABEL + r"(.*)", re.IGNORECASE)


@dataclass(slots=True, frozen=True)
class PromptRecord:
    """One candidate prompt found by a discovery call."""

    title: str
    prompt_text: str
    source_label: str = DEFAULT_SOURCE_LABEL
    tags: tuple[str, ...] = DEFAULT_TAGS


@dataclass(slots=True, frozen=True)
class CitationSource:
    """A web reference reported for a whole discovery response."""

    title: str
    uri: str


def _clean(value: Optional[str]) -> str:
    # Models like to bold field labels ("**TITLE:** ..."); drop the stray asterisks.
    return (value or "").strip().strip("*").strip()


def _split_tags(raw: Any) -> Optional[list[str]]:
    """Trimmed comma-split values, empty fragments included; None when absent."""
    if isinstance(raw, str):
        candidates: Iterable[Any] = _clean(raw).split(",")
    elif isinstance(raw, (list, tuple)):
        candidates = raw
    else:
        return None
    return [_clean(str(item)) for item in candidates]


def build_prompt_record(title: Optional[str], prompt_text: Optional[str], tags: Any = None) -> Optional[PromptRecord]:
    """Build a record, applying the placeholder defaults; None when there is no prompt body."""
    body = _clean(prompt_text)
    if not body:
        return None
    clean_tags = _split_tags(tags)
    return PromptRecord(
        title=_clean(title) or DEFAULT_TITLE,
        prompt_text=body,
        source_label=DEFAULT_SOURCE_LABEL,
        tags=DEFAULT_TAGS if clean_tags is None else tuple(clean_tags),
    )


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    lines = cleaned.splitlines()
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_structured_prompts(text: str) -> Optional[list[PromptRecord]]:
    """Parse a JSON prompt listing; None when the text is not structured."""
    cleaned = _strip_code_fence(text or "")
    if not cleaned or cleaned[0] not in "[{":
        return None
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    if isinstance(data, dict):
        data = data.get("prompts")
    if not isinstance(data, list):
        return None

    records: list[PromptRecord] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        record = build_prompt_record(item.get("title"), item.get("prompt"), item.get("tags"))
        if record is not None:
            records.append(record)
    return records


def parse_delimited_prompts(text: str) -> list[PromptRecord]:
    """Parse ``---`` separated sections carrying TITLE/PROMPT/TAGS fields."""
    records: list[PromptRecord] = []
    for section in (text or "").split(SECTION_DELIMITER):
        prompt_match = _PROMPT_PATTERN.search(section)
        if prompt_match is None:
            continue
        title_match = _TITLE_PATTERN.search(section)
        tags_match = _TAGS_PATTERN.search(section)
        record = build_prompt_record(
            title_match.group(1) if title_match else None,
            prompt_match.group(1),
            tags_match.group(1) if tags_match else None,
        )
        if record is not None:
            records.append(record)
    return records


def parse_prompt_response(text: str) -> list[PromptRecord]:
    """Prefer a structured payload; fall back to the delimited text format."""
    structured = parse_structured_prompts(text)
    if structured is not None:
        return structured
    return parse_delimited_prompts(text)


def extract_citation_sources(grounding_chunks: Sequence[dict[str, Any]]) -> list[CitationSource]:
    """One source per grounding chunk that carries a web reference."""
    sources: list[CitationSource] = []
    for chunk in grounding_chunks or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict):
            continue
        sources.append(
            CitationSource(
                title=str(web.get("title") or DEFAULT_CITATION_TITLE),
                uri=str(web.get("uri") or DEFAULT_CITATION_URI),
            )
        )
    return sources
