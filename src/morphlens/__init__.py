"""Noun phrase, keyword and similarity extraction on top of MeCab."""

from __future__ import annotations

from .analyzer import MorphAnalyzer
from .config import Settings
from .frequency import NounCount, build_frequency_map, dice_score, sort_noun_counts
from .morphemes import Morpheme, parse_mecab_output
from .phrases import extract_keyword_phrases, extract_noun_phrases
from .tagger import MecabTagger, TaggerCallError, TaggerError, TaggerInitError

__all__ = [
    "Settings",
    "MorphAnalyzer",
    "MecabTagger",
    "TaggerError",
    "TaggerInitError",
    "TaggerCallError",
    "Morpheme",
    "NounCount",
    "parse_mecab_output",
    "extract_noun_phrases",
    "extract_keyword_phrases",
    "build_frequency_map",
    "sort_noun_counts",
    "dice_score",
    "create_app",
]


def __getattr__(name: str):  # pragma: no cover - small helper
    if name == "create_app":
        from .app import create_app

        return create_app
    raise AttributeError(f"module 'morphlens' has no attribute {name}")
