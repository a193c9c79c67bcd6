"""Phrase frequency maps and the pairwise overlap score."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Mapping


@dataclass(slots=True)
class NounCount:
    """A phrase together with how often it occurred in one document."""

    noun: str
    count: int

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def build_frequency_map(phrases: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for phrase in phrases:
        if phrase not in counts:
            counts[phrase] = 0
        counts[phrase] += 1
    return counts


def sort_noun_counts(frequency_map: Mapping[str, int]) -> List[NounCount]:
    """Order a frequency map by descending count; ties keep map order."""

    counts = [NounCount(noun=noun, count=count) for noun, count in frequency_map.items()]
    counts.sort(key=lambda item: item.count, reverse=True)
    return counts


def dice_score(map_a: Mapping[str, int], map_b: Mapping[str, int]) -> int:
    """Sum of ``count_a * count_b`` over the keys of ``map_a``.

    Despite the name this is not a Dice coefficient: nothing is divided by
    the map sizes, so the value grows with document length and is not bounded
    by 1. Ranking callers rely on the raw magnitude.
    """

    score = 0
    for phrase, count_a in map_a.items():
        score += count_a * map_b.get(phrase, 0)
    return score
