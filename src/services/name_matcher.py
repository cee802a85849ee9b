"""Free-text artist name matching against event titles and subtitles.

# ─── HOW THE SCORE IS COMPUTED ────────────────────────────────────────
#
#   First rule that fires wins:
#
#   1. exact, case-insensitive after trimming ............... 1.00
#   2. equal after normalize_name() ......................... 0.95
#   3. one is a whole-word substring of the other and the
#      shorter/longer length ratio is above 0.7 ............. 0.85
#   4. significant words (len > 2) of the canonical name:
#        <= 2 words: same words, same count ................. 0.80
#                    otherwise .............................. 0.00
#        >  2 words: all present ............................ 0.75
#                    at least 80% present ................... 0.65
#   5. Levenshtein similarity > 0.9 and canonical length > 3 . 0.6 * sim
#   6. otherwise ............................................ 0.00
#
#   Rule 3's length check is what keeps "I-RO" from matching "METRO";
#   rule 4's short-name branch keeps "Gou" from matching "Peggy Gou".
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from src.models.entities import EventRecord
from src.models.lineup import MatchType, TextMatch
from src.utils.text_normalizer import (
    contains_whole_word,
    extract_artist_mentions,
    normalize_name,
    significant_words,
)

DEFAULT_LINK_THRESHOLD = 0.6


class NameMatcher:
    """Scores how likely a piece of text names a given artist.

    Parameters
    ----------
    threshold:
        Matches must score strictly above this to be returned by
        :meth:`best_match` (and therefore persisted as links).
    """

    def __init__(self, threshold: float = DEFAULT_LINK_THRESHOLD) -> None:
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        return self._threshold

    def score(self, canonical: str, mention: str) -> float:
        """Confidence in [0, 1] that *mention* refers to the artist *canonical*."""
        canonical_lower = canonical.lower().strip()
        mention_lower = mention.lower().strip()
        if not canonical_lower or not mention_lower:
            return 0.0
        if canonical_lower == mention_lower:
            return 1.0

        norm_artist = normalize_name(canonical)
        norm_mention = normalize_name(mention)
        if not norm_artist or not norm_mention:
            return 0.0
        if norm_artist == norm_mention:
            return 0.95

        if contains_whole_word(norm_artist, norm_mention) or contains_whole_word(norm_mention, norm_artist):
            ratio = min(len(norm_artist), len(norm_mention)) / max(len(norm_artist), len(norm_mention))
            if ratio > 0.7:
                return 0.85

        artist_words = significant_words(norm_artist)
        mention_words = significant_words(norm_mention)

        if len(artist_words) <= 2:
            if artist_words and len(artist_words) == len(mention_words) and all(
                w in mention_words for w in artist_words
            ):
                return 0.8
            return 0.0

        matching = [w for w in artist_words if w in mention_words]
        if len(matching) == len(artist_words):
            return 0.75
        if len(matching) >= len(artist_words) * 0.8:
            return 0.65

        distance = Levenshtein.distance(norm_artist, norm_mention)
        similarity = 1 - distance / max(len(norm_artist), len(norm_mention))
        if similarity > 0.9 and len(norm_artist) > 3:
            return similarity * 0.6

        return 0.0

    def best_match(self, artist_title: str, event: EventRecord) -> TextMatch | None:
        """Best-scoring place in *event* that names the artist.

        Candidates are the event title, each mention extracted from the
        subtitle, and each mention from the upstream (raw) subtitle when it
        differs from the stored one.  Only a strictly higher score replaces
        the current best, so earlier candidates win ties.

        Returns ``None`` unless the best score is above the threshold.
        """
        best: TextMatch | None = None

        def consider(confidence: float, match_type: MatchType, text: str, details: str) -> None:
            nonlocal best
            if confidence > 0 and (best is None or confidence > best.confidence):
                best = TextMatch(
                    confidence=confidence,
                    match_type=match_type,
                    matched_text=text,
                    details=details,
                )

        consider(
            self.score(artist_title, event.title),
            MatchType.TITLE,
            event.title,
            f'Matched in event title: "{event.title}"',
        )

        for mention in extract_artist_mentions(event.subtitle):
            consider(
                self.score(artist_title, mention),
                MatchType.SUBTITLE,
                mention,
                f'Matched "{mention}" in subtitle',
            )

        raw_subtitle = event.raw_subtitle
        if raw_subtitle and raw_subtitle != event.subtitle:
            for mention in extract_artist_mentions(raw_subtitle):
                consider(
                    self.score(artist_title, mention),
                    MatchType.RAW_SUBTITLE,
                    mention,
                    f'Matched "{mention}" in raw data subtitle',
                )

        if best is not None and best.confidence > self._threshold:
            return best
        return None
