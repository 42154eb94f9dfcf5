"""Text shortening: cut long text at the most natural break inside a length window."""

import re

DEFAULT_MIN_LENGTH = 80
DEFAULT_MAX_LENGTH = 120

SENTENCE_ENDINGS = (". ", "! ", "? ")
CLAUSE_BREAKS = (", ", "; ", " - ")
ELLIPSIS = "..."

_WHITESPACE = re.compile(r"\s+")


def _last_index(text: str, needle: str, start_at_most: int) -> int:
    """Index of the last ``needle`` that starts at or before ``start_at_most``, else -1."""
    return text.rfind(needle, 0, start_at_most + len(needle))


def shorten_text(text: str, min_length: int = DEFAULT_MIN_LENGTH, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    text = _WHITESPACE.sub(" ", text.strip())
    if len(text) <= max_length:
        return text

    # A whole sentence is kept without an ellipsis
    for ending in SENTENCE_ENDINGS:
        pos = text.find(ending, min_length)
        if 0 < pos <= max_length:
            return text[:pos + 1].strip()

    for ending in CLAUSE_BREAKS:
        pos = _last_index(text, ending, max_length)
        if pos >= min_length:
            return text[:pos].strip() + ELLIPSIS

    pos = _last_index(text, " ", max_length)
    if pos >= min_length:
        return text[:pos].strip() + ELLIPSIS

    return text[:max_length - 3].strip() + ELLIPSIS
