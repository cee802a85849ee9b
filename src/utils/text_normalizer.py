"""Text normalization utilities for artist names and free-text billings.

This module handles two concerns:

1. **Name normalization** -- lower-cases, strips punctuation and collapses
   whitespace so that "Amelie Lens", "amelie   lens" and "AMELIE LENS!"
   compare on the same footing.

2. **Mention extraction** -- turns an event subtitle such as::

       Boris Brejcha B2B Ben Böhmer (extended set)
       Charlotte de Witte Live

   into individual candidate names (``["Boris Brejcha", "Ben Böhmer",
   "Charlotte de Witte"]``) before they reach the confidence scorer.
"""

import re

# Strip every non-word, non-space character.  Unicode-aware, so "Böhmer"
# keeps its umlaut while "I-RO" becomes "iro".
_NON_WORD_PATTERN = re.compile(r"[^\w\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_LINE_PATTERN = re.compile(r"[\r\n]")

# "A B2B B" (any case, whitespace delimited) is a back-to-back billing.
_B2B_PATTERN = re.compile(r"\s+b2b\s+", re.IGNORECASE)

# Performance-mode suffixes (any case) that are not part of the stage name.
_SUFFIX_PATTERN = re.compile(r"\s+(?:live|dj)$", re.IGNORECASE)


def normalize_name(name: str) -> str:
    """Normalize an artist name for comparison.

    Args:
        name: Raw name or mention text.

    Returns:
        Lower-cased text with non-word characters removed and whitespace
        collapsed to single spaces.
    """
    normalized = _NON_WORD_PATTERN.sub("", name.lower())
    return _WHITESPACE_PATTERN.sub(" ", normalized).strip()


def significant_words(normalized: str) -> list[str]:
    """Return the words of a normalized name longer than two characters."""
    return [w for w in normalized.split(" ") if len(w) > 2]


def contains_whole_word(haystack: str, needle: str) -> bool:
    """True when *needle* occurs in *haystack* bounded by word boundaries."""
    if not needle:
        return False
    return re.search(rf"\b{re.escape(needle)}\b", haystack) is not None


def split_collaboration(candidate: str) -> list[str]:
    """Split a B2B or ``&`` billing into individual names.

    B2B takes precedence: ``"A & B B2B C"`` splits only on B2B.
    """
    if _B2B_PATTERN.search(candidate):
        parts = _B2B_PATTERN.split(candidate)
    elif "&" in candidate:
        parts = candidate.split("&")
    else:
        parts = [candidate]
    return [p.strip() for p in parts]


def strip_performance_suffix(name: str) -> str:
    """Remove a trailing " live" / " DJ" (any case) from a billed name."""
    return _SUFFIX_PATTERN.sub("", name).strip()


def extract_artist_mentions(text: str | None) -> list[str]:
    """Extract candidate artist names from free-text billing.

    Each line contributes the text before its first parenthesis; that
    candidate is split on collaboration markers and every resulting name
    has its performance suffix stripped.  Empty names are dropped.

    Args:
        text: Event subtitle or description text.

    Returns:
        Candidate names in the order they appear.
    """
    if not text:
        return []

    mentions: list[str] = []
    for line in _LINE_PATTERN.split(text):
        candidate = line.split("(", 1)[0].strip()
        if not candidate:
            continue
        for name in split_collaboration(candidate):
            cleaned = strip_performance_suffix(name)
            if cleaned:
                mentions.append(cleaned)
    return mentions
