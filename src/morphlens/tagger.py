"""MeCab tagger wrapper with an explicit per-call lattice pipeline."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Final, List

try:  # pragma: no cover - optional dependency
    import MeCab
except Exception:  # pragma: no cover
    MeCab = None  # type: ignore[assignment]

from .morphemes import Morpheme, parse_mecab_output, to_morphemes

DEFAULT_DICTIONARY_PATH: Final[str] = "/usr/local/lib/mecab/dic/mecab-ko-dic"

logger = logging.getLogger(__name__)


class TaggerError(RuntimeError):
    """Base error raised by the tagger boundary."""


class TaggerInitError(TaggerError):
    """The MeCab model or tagger could not be created."""


class TaggerCallError(TaggerError):
    """A single parse call failed at ``stage``."""

    def __init__(self, message: str, *, stage: "ParseStage") -> None:
        super().__init__(message)
        self.stage = stage


class ParseStage(Enum):
    """Stages of a single parse call, in execution order."""

    LATTICE_CREATED = "lattice_created"
    SENTENCE_SET = "sentence_set"
    TAGGED = "tagged"
    STRINGIFIED = "stringified"
    RELEASED = "released"


def build_mecab_args(
    dictionary_path: str,
    *,
    user_dictionary_path: str | None = None,
    rcfile_path: str | None = None,
) -> str:
    """Build the MeCab argument string for a model."""

    parts = [f"-d {dictionary_path}"]
    if user_dictionary_path:
        parts.append(f"-u {user_dictionary_path}")
    if rcfile_path:
        parts.append(f"-r {rcfile_path}")
    return " ".join(parts)


def _diagnostic(handle: Any) -> str:
    """Best-effort engine error string for ``handle`` (tagger or lattice)."""

    what = getattr(handle, "what", None)
    if callable(what):
        try:
            return str(what() or "")
        except Exception:  # pragma: no cover - diagnostic only
            return ""
    return ""


class MecabTagger:
    """Owns one MeCab model/tagger pair and parses text into morphemes.

    Every call allocates its own lattice and runs five stages in order:
    create the lattice, set the sentence, tag, stringify, release. A failure
    at any stage skips the rest, releases the lattice if one was created and
    raises :class:`TaggerCallError`.

    The engine is not reentrant, so the whole pipeline runs under a
    per-instance thread lock. Calls from several threads or tasks take turns.
    """

    def __init__(
        self,
        dictionary_path: str = DEFAULT_DICTIONARY_PATH,
        *,
        user_dictionary_path: str | None = None,
        rcfile_path: str | None = None,
        model_factory: Callable[[str], Any] | None = None,
    ) -> None:
        if model_factory is None:
            if MeCab is None:
                raise TaggerInitError(
                    "Failed to create a new model - mecab-python3 is not installed"
                )
            model_factory = MeCab.Model

        self.dictionary_path = dictionary_path
        self._args = build_mecab_args(
            dictionary_path,
            user_dictionary_path=user_dictionary_path,
            rcfile_path=rcfile_path,
        )

        try:
            model = model_factory(self._args)
        except Exception as exc:
            raise TaggerInitError(f"Failed to create a new model - {exc}") from exc
        if model is None:
            raise TaggerInitError("Failed to create a new model - model factory returned nothing")

        try:
            tagger = model.createTagger()
        except Exception as exc:
            del model
            raise TaggerInitError(f"Failed to create a new tagger - {exc}") from exc
        if tagger is None:
            del model
            raise TaggerInitError("Failed to create a new tagger - model returned no tagger")

        self._model: Any | None = model
        self._tagger: Any | None = tagger
        self._engine_lock = threading.Lock()
        logger.info("tagger.init dictionary=%s", dictionary_path)

    @property
    def closed(self) -> bool:
        return self._model is None

    def close(self) -> None:
        """Release the tagger and model; safe to call more than once."""

        if self._model is None:
            return
        self._tagger = None
        self._model = None
        logger.info("tagger.close dictionary=%s", self.dictionary_path)

    def __enter__(self) -> "MecabTagger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Stage helpers -----------------------------------------------------

    def _handles(self) -> tuple[Any, Any]:
        if self._model is None or self._tagger is None:
            raise TaggerError("Tagger has been closed")
        return self._model, self._tagger

    def _create_lattice(self) -> Any:
        model, tagger = self._handles()
        try:
            lattice = model.createLattice()
        except Exception as exc:
            raise TaggerCallError(
                f"Failed to create a new lattice - {exc}",
                stage=ParseStage.LATTICE_CREATED,
            ) from exc
        if lattice is None:
            raise TaggerCallError(
                f"Failed to create a new lattice - {_diagnostic(tagger)}",
                stage=ParseStage.LATTICE_CREATED,
            )
        return lattice

    @staticmethod
    def _set_sentence(lattice: Any, text: str) -> None:
        lattice.set_sentence(text)

    def _tag(self, lattice: Any) -> None:
        _, tagger = self._handles()
        if tagger.parse(lattice) is False:
            detail = _diagnostic(lattice) or _diagnostic(tagger)
            raise TaggerCallError(f"Failed to parse the lattice - {detail}", stage=ParseStage.TAGGED)

    @staticmethod
    def _stringify(lattice: Any) -> str:
        output = lattice.toString()
        if output is None:
            raise TaggerCallError(
                f"Failed to stringify the lattice - {_diagnostic(lattice)}",
                stage=ParseStage.STRINGIFIED,
            )
        return output

    @staticmethod
    def _release(lattice: Any) -> None:
        lattice.clear()

    def _release_quietly(self, lattice: Any) -> None:
        try:
            self._release(lattice)
        except Exception as exc:  # pragma: no cover - original error wins
            logger.warning("tagger.release.error error=%s", exc)

    def _abort(self, lattice: Any, stage: ParseStage, exc: Exception) -> TaggerCallError:
        """Release ``lattice`` and return the error to raise for ``stage``."""

        self._release_quietly(lattice)
        logger.warning("tagger.parse.error stage=%s error=%s", stage.value, exc)
        if isinstance(exc, TaggerCallError):
            return exc
        return TaggerCallError(f"Tagger failed at stage {stage.value} - {exc}", stage=stage)

    def _run_pipeline(self, text: str) -> tuple[str, dict[ParseStage, float]]:
        """Run all five stages for ``text`` while holding the engine lock.

        Returns the raw tagger output and the duration of each stage in
        milliseconds. The lattice is released before this returns or raises.
        """

        timings: dict[ParseStage, float] = {}
        with self._engine_lock:
            mark = time.perf_counter()
            lattice = self._create_lattice()
            timings[ParseStage.LATTICE_CREATED] = (time.perf_counter() - mark) * 1000.0

            stage = ParseStage.SENTENCE_SET
            try:
                mark = time.perf_counter()
                self._set_sentence(lattice, text)
                timings[stage] = (time.perf_counter() - mark) * 1000.0

                stage = ParseStage.TAGGED
                mark = time.perf_counter()
                self._tag(lattice)
                timings[stage] = (time.perf_counter() - mark) * 1000.0

                stage = ParseStage.STRINGIFIED
                mark = time.perf_counter()
                output = self._stringify(lattice)
                timings[stage] = (time.perf_counter() - mark) * 1000.0

                stage = ParseStage.RELEASED
                mark = time.perf_counter()
                self._release(lattice)
                timings[stage] = (time.perf_counter() - mark) * 1000.0
            except TaggerCallError as exc:
                raise self._abort(lattice, stage, exc)
            except Exception as exc:
                raise self._abort(lattice, stage, exc) from exc
        return output, timings

    def _finish(
        self, text: str, output: str, timings: dict[ParseStage, float], mode: str
    ) -> List[Morpheme]:
        morphemes = to_morphemes(parse_mecab_output(output))
        if logger.isEnabledFor(logging.DEBUG):
            stages = ",".join(f"{stage.value}={value:.2f}" for stage, value in timings.items())
            logger.debug(
                "tagger.parse mode=%s chars=%s morphemes=%s stages=%s duration_ms=%.2f",
                mode,
                len(text),
                len(morphemes),
                stages,
                sum(timings.values()),
            )
        return morphemes

    # Public API --------------------------------------------------------

    def parse_sync(self, text: str) -> List[Morpheme]:
        """Parse ``text`` on the calling thread."""

        output, timings = self._run_pipeline(text)
        return self._finish(text, output, timings, "sync")

    async def parse(self, text: str) -> List[Morpheme]:
        """Parse ``text`` on a worker thread.

        Cancelling the awaiting task does not interrupt the worker. Its
        lattice is still released before the next call enters the engine.
        """

        output, timings = await asyncio.to_thread(self._run_pipeline, text)
        return self._finish(text, output, timings, "async")
