"""Text analysis for similarity scoring: tokenizing and keyword extraction.

Tokens are lowercase runs of letters and digits. Results keep first-seen
order with duplicates removed, so downstream scoring is deterministic.
"""

from __future__ import annotations

import re

_TOKEN_RE = re.compile(r"[^\W_]+")

STOP_WORDS: frozenset[str] = frozenset(
    """
    the be to of and a in that have i it for not on with he as you do at
    this but his by from they we say her she or an will my one all would
    there their what so up out if about who get which go me when make can
    like time no just him know take people into year your good some could
    them see other than then now look only come its over think also back
    after use two how our work first well way even new want because any
    these give day most us is was are been has had were said did having
    may am should too very
    """.split()
)


class TextAnalyzer:
    """Tokenizer with English stop-word filtering."""

    def __init__(self, stop_words: frozenset[str] = STOP_WORDS) -> None:
        self.stop_words = stop_words

    def tokenize(self, text: str) -> list[str]:
        """Unique lowercase words longer than one character."""
        words = (w for w in _TOKEN_RE.findall(text.lower()) if len(w) > 1)
        return list(dict.fromkeys(words))

    def extract_keywords(self, text: str) -> list[str]:
        """Tokens longer than two characters that are not stop words."""
        return [w for w in self.tokenize(text) if len(w) > 2 and w not in self.stop_words]

    def extract_significant_words(self, text: str, min_length: int) -> list[str]:
        return [
            w for w in self.tokenize(text) if len(w) >= min_length and w not in self.stop_words
        ]
