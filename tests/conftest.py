from __future__ import annotations

import threading
import time
from typing import Iterable, Sequence

import pytest

from morphlens.analyzer import MorphAnalyzer
from morphlens.tagger import MecabTagger


def mecab_output(rows: Iterable[Sequence[str]]) -> str:
    """Render rows the way a MeCab lattice prints them, trailer included."""

    lines = [f"{row[0]}\t{','.join(row[1:])}" for row in rows]
    return "\n".join(lines + ["EOS", ""])


class FakeLattice:
    def __init__(self, engine: "FakeMecabEngine") -> None:
        self._engine = engine
        self.sentence: str | None = None
        self.output: str | None = None
        self.cleared = False

    def set_sentence(self, text: str) -> None:
        self._engine.calls.append("set_sentence")
        self._engine.maybe_fail("set_sentence")
        self.sentence = text

    def toString(self) -> str | None:  # noqa: N802 - mirrors the MeCab binding
        self._engine.calls.append("toString")
        self._engine.maybe_fail("toString")
        return self.output

    def clear(self) -> None:
        self._engine.calls.append("clear")
        self.cleared = True

    def what(self) -> str:
        return "lattice diagnostic"


class FakeTagger:
    def __init__(self, engine: "FakeMecabEngine") -> None:
        self._engine = engine

    def parse(self, lattice: FakeLattice) -> bool:
        self._engine.calls.append("parse")
        self._engine.enter()
        try:
            if self._engine.parse_delay:
                time.sleep(self._engine.parse_delay)
            self._engine.maybe_fail("parse")
        finally:
            self._engine.leave()
        if self._engine.parse_result is False:
            return False
        rows = self._engine.outputs.get(lattice.sentence or "", [])
        lattice.output = mecab_output(rows)
        return True

    def what(self) -> str:
        return "tagger diagnostic"


class FakeModel:
    def __init__(self, engine: "FakeMecabEngine", args: str) -> None:
        self._engine = engine
        self.args = args

    def createTagger(self):  # noqa: N802 - mirrors the MeCab binding
        if self._engine.fail_tagger:
            return None
        return FakeTagger(self._engine)

    def createLattice(self):  # noqa: N802 - mirrors the MeCab binding
        self._engine.calls.append("createLattice")
        if self._engine.fail_lattice:
            return None
        lattice = FakeLattice(self._engine)
        self._engine.lattices.append(lattice)
        return lattice


class FakeMecabEngine:
    """Stands in for ``MeCab.Model``; maps input text to morpheme rows."""

    def __init__(self) -> None:
        self.outputs: dict[str, list[Sequence[str]]] = {}
        self.calls: list[str] = []
        self.lattices: list[FakeLattice] = []
        self.models: list[FakeModel] = []
        self.fail_at: str | None = None
        self.fail_tagger = False
        self.fail_lattice = False
        self.parse_result = True
        self.parse_delay = 0.0
        self.active = 0
        self.max_active = 0
        self._state_lock = threading.Lock()

    def __call__(self, args: str) -> FakeModel:
        model = FakeModel(self, args)
        self.models.append(model)
        return model

    def enter(self) -> None:
        with self._state_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)

    def leave(self) -> None:
        with self._state_lock:
            self.active -= 1

    def maybe_fail(self, step: str) -> None:
        if self.fail_at == step:
            raise RuntimeError(f"{step} exploded")


@pytest.fixture()
def fake_engine() -> FakeMecabEngine:
    return FakeMecabEngine()


@pytest.fixture()
def tagger(fake_engine: FakeMecabEngine) -> MecabTagger:
    return MecabTagger("/tmp/mecab-ko-dic", model_factory=fake_engine)


@pytest.fixture()
def analyzer(tagger: MecabTagger) -> MorphAnalyzer:
    return MorphAnalyzer(tagger)
