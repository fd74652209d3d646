from __future__ import annotations

from collections import Counter

import pytest
from hypothesis import given, settings, strategies as st

from bingo_play.errors import ValidationError
from bingo_play.generator import generate, record_play, shuffle_cells
from bingo_play.rng import PyRandomSource, RandomSource


def test_center_pinned_and_rest_permuted(items, rng):
    card = generate("Meeting Bingo", items, rng=rng)
    assert card.cells[12] == items[12]
    rest_in = [x for i, x in enumerate(items) if i != 12]
    rest_out = [x for i, x in enumerate(card.cells) if i != 12]
    assert Counter(rest_in) == Counter(rest_out)
    assert card.title == "Meeting Bingo"


def test_new_card_metadata(items, rng):
    card = generate("Meeting Bingo", items, rng=rng, now=1234)
    assert card.created_at == card.last_played_at == 1234
    assert card.play_count == 0
    assert card.imported is False
    assert len(card.cells) == 25

    imported = generate("Meeting Bingo", items, imported=True, rng=rng)
    assert imported.imported is True


def test_fresh_id_each_time(items):
    ids = {generate("t", items).id for _ in range(20)}
    assert len(ids) == 20


def test_seeded_generation_is_reproducible(items):
    a = generate("t", items, rng=PyRandomSource(7))
    b = generate("t", items, rng=PyRandomSource(7))
    assert a.cells == b.cells
    assert a.id != b.id


@pytest.mark.parametrize("count", [0, 24, 26])
def test_wrong_item_count_rejected(count):
    with pytest.raises(ValidationError):
        generate("title", [f"item {i}" for i in range(count)])


def test_empty_title_rejected(items):
    with pytest.raises(ValidationError):
        generate("   ", items)


def test_oversized_input_truncated(items):
    items[3] = "x" * 500
    card = generate("T" * 150, items)
    assert card.title == "T" * 100
    assert "x" * 200 in card.cells
    assert all(len(c) <= 200 for c in card.cells)


def test_shuffle_positions_are_roughly_uniform():
    labels = [f"w{i}" for i in range(25)]
    rng = PyRandomSource(99)
    landed = Counter()
    runs = 2400
    for _ in range(runs):
        cells = shuffle_cells(labels, rng)
        landed[cells.index("w0")] += 1
    assert 12 not in landed
    assert set(landed) == set(range(25)) - {12}
    expected = runs / 24
    for count in landed.values():
        assert expected * 0.5 < count < expected * 1.5


@settings(max_examples=50)
@given(seed=st.integers(min_value=0, max_value=2**32))
def test_shuffle_keeps_center_for_any_seed(seed):
    labels = [f"w{i}" for i in range(25)]
    cells = shuffle_cells(labels, PyRandomSource(seed))
    assert cells[12] == "w12"
    assert sorted(cells) == sorted(labels)


def test_record_play(card):
    played = record_play(card, now=card.created_at + 10)
    assert played.play_count == 1
    assert played.last_played_at == card.created_at + 10
    assert played.id == card.id
    assert card.play_count == 0


class LowestSource(RandomSource):
    def __init__(self):
        super().__init__(engine="lowest")

    def randint(self, a: int, b: int) -> int:
        return a


def test_shuffle_needs_only_randint(items):
    shuffled = shuffle_cells(items, LowestSource())
    assert shuffled[12] == items[12]
    assert Counter(shuffled) == Counter(items)
    assert shuffled != tuple(items)
