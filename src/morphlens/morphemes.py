"""Morpheme records and the MeCab output parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterable, List, Sequence, Tuple

NOUN_TAGS: Final[frozenset[str]] = frozenset({"NNG", "NNP", "NP"})
NUMERAL_TAG: Final[str] = "SN"
ADJECTIVE_TAG: Final[str] = "VA"
ADNOMINAL_ENDING_TAG: Final[str] = "ETM"
ADJECTIVE_ADNOMINAL_TAG: Final[str] = "VA+ETM"
NO_COMPOUND_MARK: Final[str] = "*"

# mecab-ko-dic rows end with "EOS" and a blank line.
_TRAILER_LINES: Final[int] = 2


@dataclass(frozen=True, slots=True)
class Morpheme:
    """A single tagged token produced by the tagger.

    ``features`` holds every field after the surface, POS tag first, so
    ``features[3]`` is the compound-structure column of mecab-ko-dic.
    """

    surface: str
    features: Tuple[str, ...] = ()

    @property
    def pos(self) -> str:
        return self.features[0] if self.features else ""

    @property
    def is_noun(self) -> bool:
        return self.pos in NOUN_TAGS

    @property
    def is_numeral(self) -> bool:
        return self.pos == NUMERAL_TAG

    def feature(self, index: int) -> str | None:
        """Return the feature at ``index`` or ``None`` when the row is short."""

        if 0 <= index < len(self.features):
            return self.features[index]
        return None

    @classmethod
    def from_fields(cls, fields: Sequence[str]) -> "Morpheme":
        if not fields:
            return cls(surface="")
        return cls(surface=fields[0], features=tuple(fields[1:]))


def split_fields(line: str) -> List[str]:
    """Split one ``surface<TAB>f1,f2,...`` line into a flat field list."""

    return line.replace("\t", ",", 1).split(",")


def parse_mecab_output(output: str) -> List[List[str]]:
    """Turn raw lattice text into field arrays, one per morpheme.

    The last two lines are dropped without inspection. Callers must hand in
    the complete output of a single lattice; anything else either loses real
    rows or leaks the trailer through as malformed records.
    """

    rows = [split_fields(line) for line in output.split("\n")]
    return rows[:-_TRAILER_LINES]


def to_morphemes(rows: Iterable[Sequence[str]]) -> List[Morpheme]:
    return [Morpheme.from_fields(row) for row in rows]
