"""Tokenization and keyword extraction over visible page text."""

from __future__ import annotations

import re
from collections import Counter

WORD_RE = re.compile(r"\b\w+\b")
ALPHA_WORD_RE = re.compile(r"\b[a-z]+\b")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

# Counted by the keyword-density analyzer when the caller supplies no keywords
DEFAULT_DENSITY_KEYWORDS = ["the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"]

STOP_WORDS = frozenset("""
the and or but in on at to for of with by from up about into through during before after above
below between among under over is are was were be been being have has had do does did will would
could should may might must can this that these those i you he she it we they me him her us them
my your his its our their a an as if each how which who when where why what all any both few more
most other some such no nor not only own same so than too very just now here there then get got
make made take took come came go went see saw know knew think thought say said tell told give gave
find found use used work works worked way ways new old first last long good great little right big
high different small large next early young important public bad able
""".split())


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens."""
    return WORD_RE.findall(text.lower())


def count_phrases(tokens: list[str], keywords: list[str]) -> dict[str, int]:
    """
    Occurrences of each keyword in the token stream.

    Keywords are matched longest first and each token is attributed to at
    most one keyword, so the counts never sum past len(tokens).
    """
    phrases = {keyword: tokenize(keyword) for keyword in keywords}
    counts = {keyword: 0 for keyword in keywords}
    used = [False] * len(tokens)

    for keyword in sorted(keywords, key=lambda k: len(phrases[k]), reverse=True):
        words = phrases[keyword]
        size = len(words)
        if not size:
            continue
        i = 0
        while i <= len(tokens) - size:
            if tokens[i:i + size] == words and not any(used[i:i + size]):
                counts[keyword] += 1
                for j in range(i, i + size):
                    used[j] = True
                i += size
            else:
                i += 1
    return counts


def extract_meaningful_keywords(text: str, min_length: int = 3, max_keywords: int = 20) -> list[tuple[str, int]]:
    """
    Most frequent 1-4 word phrases made only of non-stop words.
    Phrases never span sentence boundaries.
    """
    counts: Counter[str] = Counter()

    def meaningful(word: str) -> bool:
        return len(word) >= min_length and word not in STOP_WORDS

    for sentence in SENTENCE_SPLIT_RE.split(text.lower()):
        words = ALPHA_WORD_RE.findall(sentence)
        for size in range(1, 5):
            for i in range(len(words) - size + 1):
                window = words[i:i + size]
                if all(meaningful(w) for w in window):
                    counts[" ".join(window)] += 1

    return counts.most_common(max_keywords)


def extract_seed_keywords(text: str, limit: int = 5, min_length: int = 5) -> list[str]:
    """The most frequent long words of the text; ties keep first-seen order."""
    counts = Counter(
        word for word in ALPHA_WORD_RE.findall(text.lower())
        if len(word) >= min_length and word not in STOP_WORDS
    )
    return [word for word, _ in counts.most_common(limit)]
