"""Sanitization of free-text fields received from callers."""

import re

from ..config import MAX_FILENAME_LENGTH, MAX_MESSAGE_LENGTH

# Control characters other than tab and newline
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_ALL_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_TRAVERSAL = re.compile(r"\.{2,}")
_UNSAFE_FILENAME_CHARS = re.compile(r"[<>:\"/\\|?*`']")
_UNSAFE_MARKUP_CHARS = re.compile(r"[<>\"'`]")

FALLBACK_FILENAME = "attachment"


def sanitize_text(value: object, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Strip control characters (keeping newlines and tabs) and cap length."""
    if value is None:
        return ""
    text = str(value).replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS.sub("", text)
    return text[:max_length]


def sanitize_markup(value: object, max_length: int = 200) -> str:
    """Single-line text safe to embed in markup: no control or tag characters."""
    if value is None:
        return ""
    text = _ALL_CONTROL_CHARS.sub("", str(value))
    text = _UNSAFE_MARKUP_CHARS.sub("", text)
    return text.strip()[:max_length]


def sanitize_filename(value: object, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """File name with traversal sequences, separators and unsafe characters removed."""
    if value is None:
        return FALLBACK_FILENAME
    name = _ALL_CONTROL_CHARS.sub("", str(value))
    name = _TRAVERSAL.sub("", name)
    name = _UNSAFE_FILENAME_CHARS.sub("_", name)
    name = name.strip(" ._")
    return name[:max_length] or FALLBACK_FILENAME
