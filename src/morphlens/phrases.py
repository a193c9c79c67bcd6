"""Noun phrase and keyword extraction over tagged morphemes."""

from __future__ import annotations

import logging
from typing import List, Sequence

from .morphemes import (
    ADJECTIVE_ADNOMINAL_TAG,
    ADJECTIVE_TAG,
    ADNOMINAL_ENDING_TAG,
    NO_COMPOUND_MARK,
    NOUN_TAGS,
    NUMERAL_TAG,
    Morpheme,
)

DEFAULT_KEYWORD_LIMIT = 3

# Column of ``Morpheme.features`` that holds "*" for non-compound entries.
_COMPOUND_FEATURE_INDEX = 3

_BIGRAM_LEAD_TAGS = NOUN_TAGS | {NUMERAL_TAG, ADJECTIVE_ADNOMINAL_TAG}

logger = logging.getLogger(__name__)


def extract_noun_phrases(morphemes: Sequence[Morpheme]) -> List[str]:
    """Collect nouns plus the short phrases that end in them.

    For each noun the preceding numeral, noun or ``VA+ETM`` morpheme yields a
    two-word phrase, and a preceding ``VA`` ``ETM`` pair yields the fused
    adjective followed by the noun. The bare noun is always emitted last, so
    compound terms overlap with their head noun in the output.
    """

    phrases: List[str] = []
    for index, morpheme in enumerate(morphemes):
        if morpheme.pos not in NOUN_TAGS:
            continue
        if index > 0:
            prev = morphemes[index - 1]
            if prev.pos in _BIGRAM_LEAD_TAGS:
                phrases.append(f"{prev.surface} {morpheme.surface}")
            if index > 1:
                prev2 = morphemes[index - 2]
                if prev2.pos == ADJECTIVE_TAG and prev.pos == ADNOMINAL_ENDING_TAG:
                    phrases.append(f"{prev2.surface}{prev.surface} {morpheme.surface}")
        phrases.append(morpheme.surface)
    return phrases


def _is_keyword_fragment(morpheme: Morpheme) -> bool:
    return (
        morpheme.pos in NOUN_TAGS
        and len(morpheme.surface) > 1
        and morpheme.feature(_COMPOUND_FEATURE_INDEX) == NO_COMPOUND_MARK
    )


def collect_keyword_runs(morphemes: Sequence[Morpheme]) -> List[str]:
    """Return every committed run of two or more noun fragments, in order.

    A numeral is carried onto the next qualifying noun; a later numeral
    replaces an unused one. A run is committed only when a non-qualifying
    morpheme ends it, so a run still open at the end of the sequence is lost.
    """

    keywords: List[str] = []
    fragments: List[str] = []
    pending_numeral = ""
    for morpheme in morphemes:
        if morpheme.pos == NUMERAL_TAG:
            pending_numeral = morpheme.surface
        elif _is_keyword_fragment(morpheme):
            fragments.append(pending_numeral + morpheme.surface)
            pending_numeral = ""
        else:
            if len(fragments) > 1:
                keywords.append(" ".join(fragments))
            fragments = []
            pending_numeral = ""
    return keywords


def extract_keyword_phrases(
    morphemes: Sequence[Morpheme],
    n: int = DEFAULT_KEYWORD_LIMIT,
) -> List[str]:
    """Return up to ``n`` distinct keyword runs, longest first.

    Truncation happens before sorting: the result is the first ``n`` distinct
    runs in discovery order, reordered by length. It is not the ``n``
    longest runs of the document.
    """

    if n < 0:
        raise ValueError("n must be zero or positive")
    runs = collect_keyword_runs(morphemes)
    unique = list(dict.fromkeys(runs))
    selected = unique[:n]
    selected.sort(key=len, reverse=True)
    logger.debug(
        "keywords.extract runs=%s unique=%s selected=%s",
        len(runs),
        len(unique),
        len(selected),
    )
    return selected
