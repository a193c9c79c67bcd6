"""High-level noun, keyword and similarity operations on raw text."""

from __future__ import annotations

import asyncio
import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING, Dict, List, Mapping

from .frequency import NounCount, build_frequency_map, dice_score, sort_noun_counts
from .morphemes import Morpheme
from .phrases import DEFAULT_KEYWORD_LIMIT, extract_keyword_phrases, extract_noun_phrases
from .tagger import MecabTagger, TaggerError

if TYPE_CHECKING:
    from .config import Settings
    from .observability import MetricsRecorder

logger = logging.getLogger(__name__)


class MorphAnalyzer:
    """Run the tagger and post-process its morphemes.

    Calls into the shared tagger queue on an asyncio lock so waiting tasks do
    not hold worker threads; the tagger's own thread lock keeps the engine
    single-entry when a caller is cancelled. Post-processing runs outside
    both locks.
    """

    def __init__(
        self,
        tagger: MecabTagger,
        *,
        keyword_limit: int = DEFAULT_KEYWORD_LIMIT,
        metrics: "MetricsRecorder | None" = None,
    ) -> None:
        if keyword_limit < 0:
            raise ValueError("keyword_limit must be zero or positive")
        self._tagger = tagger
        self._keyword_limit = keyword_limit
        self._metrics = metrics
        self._parse_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        *,
        metrics: "MetricsRecorder | None" = None,
    ) -> "MorphAnalyzer":
        return cls(
            settings.build_tagger(),
            keyword_limit=settings.keyword_max_results,
            metrics=metrics or settings.build_metrics_recorder(),
        )

    @property
    def tagger(self) -> MecabTagger:
        return self._tagger

    @property
    def keyword_limit(self) -> int:
        return self._keyword_limit

    def close(self) -> None:
        self._tagger.close()

    async def _parse(self, text: str, operation: str) -> List[Morpheme]:
        try:
            async with self._parse_lock:
                return await self._tagger.parse(text)
        except TaggerError:
            if self._metrics is not None:
                self._metrics.increment("analyzer.errors", operation=operation)
            raise

    def _timed(self, operation: str):
        if self._metrics is None:
            return nullcontext()
        return self._metrics.track_timing("analyzer.duration", operation=operation)

    async def extract_nouns(self, text: str) -> List[str]:
        """Nouns of ``text`` plus the bigram and trigram phrases ending in them."""

        with self._timed("nouns"):
            morphemes = await self._parse(text, "nouns")
            return extract_noun_phrases(morphemes)

    async def extract_keywords(self, text: str, *, n: int | None = None) -> List[str]:
        """Up to ``n`` keyword runs of ``text``, longest first."""

        limit = self._keyword_limit if n is None else n
        with self._timed("keywords"):
            morphemes = await self._parse(text, "keywords")
            return extract_keyword_phrases(morphemes, limit)

    async def extract_noun_map(self, text: str) -> Dict[str, int]:
        return build_frequency_map(await self.extract_nouns(text))

    async def extract_sorted_noun_counts(self, text: str) -> List[NounCount]:
        return sort_noun_counts(await self.extract_noun_map(text))

    def get_dice_coefficient_by_noun_map(
        self,
        noun_map_a: Mapping[str, int],
        noun_map_b: Mapping[str, int],
    ) -> int:
        """Unnormalized overlap score of two noun maps; see :func:`dice_score`."""

        return dice_score(noun_map_a, noun_map_b)

    async def get_dice_coefficient_by_string(self, text_a: str, text_b: str) -> int:
        """Build both noun maps concurrently, then score them.

        If either side fails the other task is cancelled and the error is
        raised to the caller.
        """

        with self._timed("similarity"):
            task_a = asyncio.create_task(self.extract_noun_map(text_a))
            task_b = asyncio.create_task(self.extract_noun_map(text_b))
            try:
                noun_map_a, noun_map_b = await asyncio.gather(task_a, task_b)
            except BaseException:
                for task in (task_a, task_b):
                    if not task.done():
                        task.cancel()
                await asyncio.gather(task_a, task_b, return_exceptions=True)
                raise
            score = self.get_dice_coefficient_by_noun_map(noun_map_a, noun_map_b)
        logger.debug(
            "analyzer.similarity keys_a=%s keys_b=%s score=%s",
            len(noun_map_a),
            len(noun_map_b),
            score,
        )
        return score

