"""Structured fields derived from unstructured assistant text.

All functions here are pure: the same content always yields the same
result, so they can be re-run on the whole accumulated text after every
streamed token.
"""

import re
from typing import NamedTuple

from .models import Confidence

_CONFIDENCE_PATTERN = re.compile(
    r"confidence\s+level[*_\s]*:[*_\[\s]*(high|medium|low)\b",
    re.IGNORECASE,
)
_AGENT_PATTERN = re.compile(
    r"responding\s+agent[*_\s]*:[*_\s]*\[?([^\n\]]*)",
    re.IGNORECASE,
)
_SECTION_PATTERN = re.compile(
    r"(?:IPC|BNS|CrPC|Section)\s+\d+[A-Za-z]?(?:\s*[-–]\s*\d+[A-Za-z]?)?",
    re.IGNORECASE,
)
_REASONING_PATTERN = re.compile(
    r"\*\*AI Reasoning\*\*[:\s]*\n?.*?(?=\n\*\*Disclaimer\*\*|\n---|\n\*\*7\.|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


class MessageMetadata(NamedTuple):
    """Fields derived from assistant content; None when the marker is absent."""

    confidence: Confidence | None
    agent_name: str | None


def extract_confidence(content: str) -> Confidence | None:
    """Return the last stated confidence level, if any."""
    level = None
    for match in _CONFIDENCE_PATTERN.finditer(content):
        level = match.group(1)
    return Confidence(level.upper()) if level else None


def extract_agent_name(content: str) -> str | None:
    """Return the last stated responding agent, if any.

    While a response is streaming the marker line may be incomplete, in
    which case the partial label is returned and refined on the next scan.
    """
    name = None
    for match in _AGENT_PATTERN.finditer(content):
        candidate = match.group(1).strip().strip("*_[]").strip()
        if candidate:
            name = candidate
    return name


def derive_metadata(content: str) -> MessageMetadata:
    """Derive confidence and agent label from the full accumulated content."""
    return MessageMetadata(
        confidence=extract_confidence(content),
        agent_name=extract_agent_name(content),
    )


def extract_sections(content: str) -> list[str]:
    """Statute citations (IPC/BNS/CrPC/Section N) in order of first appearance."""
    seen: dict[str, None] = {}
    for match in _SECTION_PATTERN.finditer(content):
        seen.setdefault(match.group(0), None)
    return list(seen)


def split_reasoning(content: str) -> tuple[str, str | None]:
    """Separate the "AI Reasoning" section from the main answer.

    Returns:
        (main_content, reasoning) where reasoning is None if absent
    """
    match = _REASONING_PATTERN.search(content)
    if match is None:
        return content, None
    reasoning = match.group(0)
    main = _EXCESS_BLANK_LINES.sub("\n\n", content.replace(reasoning, ""))
    return main, reasoning
