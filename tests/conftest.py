from __future__ import annotations

from pathlib import Path

import pytest

from bingo_play.generator import generate
from bingo_play.rng import PyRandomSource
from bingo_play.storage import JsonCardStore

WORDS = [
    "synergy", "circle back", "deep dive", "bandwidth", "low-hanging fruit",
    "action item", "touch base", "leverage", "pivot", "alignment",
    "stakeholder", "deliverable", "FREE SPACE", "paradigm", "roadmap",
    "take offline", "mute yourself", "can you see my screen", "ping me", "quick win",
    "north star", "moving forward", "ecosystem", "blocker", "parking lot",
]


@pytest.fixture
def items() -> list[str]:
    return list(WORDS)


@pytest.fixture
def rng() -> PyRandomSource:
    return PyRandomSource(20250824)


@pytest.fixture
def card(items, rng):
    return generate("Meeting Bingo", items, rng=rng, now=1_700_000_000_000)


@pytest.fixture
def store(tmp_path: Path) -> JsonCardStore:
    return JsonCardStore(tmp_path / "games.json")
