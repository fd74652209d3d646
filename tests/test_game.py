from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from bingo_play import game
from bingo_play.errors import InvalidIndexError
from bingo_play.models import GameState


def fresh():
    return game.reset("card-1", now=1000)


def mark_all(state, indices, now=2000):
    for i in indices:
        state = game.toggle(state, i, now=now)
    return state


def test_reset_marks_only_free_cell():
    state = fresh()
    assert state.marked == frozenset({12})
    assert state.won_patterns == frozenset()
    assert state.started_at == 1000
    assert state.completed_at is None
    assert not game.is_won(state)


def test_row_zero_win_then_unmark_keeps_completion_time():
    state = mark_all(fresh(), [0, 1, 2, 3], now=2000)
    assert state.won_patterns == frozenset()
    assert state.completed_at is None

    state = game.toggle(state, 4, now=3000)
    assert "row-0" in state.won_patterns
    assert state.completed_at == 3000

    state = game.toggle(state, 0, now=4000)
    assert "row-0" not in state.won_patterns
    assert state.completed_at == 3000
    assert 0 not in state.marked


def test_completion_time_is_set_once():
    state = mark_all(fresh(), [0, 1, 2, 3, 4], now=3000)
    state = game.toggle(state, 0, now=4000)
    state = game.toggle(state, 0, now=5000)
    assert state.won_patterns == frozenset({"row-0"})
    assert state.completed_at == 3000


def test_center_toggle_is_ignored():
    state = mark_all(fresh(), [5, 6])
    after = game.toggle(state, 12)
    assert after == state
    assert 12 in after.marked


@pytest.mark.parametrize("index", [-1, 25, 100, True, "3", 2.0, None])
def test_out_of_range_index_rejected(index):
    state = fresh()
    with pytest.raises(InvalidIndexError):
        game.toggle(state, index)
    assert state.marked == frozenset({12})


def test_center_helps_every_line_through_it():
    state = mark_all(fresh(), [10, 11, 13, 14])
    assert state.won_patterns == frozenset({"row-2"})
    state = mark_all(state, [0, 6, 18, 24])
    assert state.won_patterns == frozenset({"row-2", "diag-0"})
    assert game.winning_cells(state) == frozenset({10, 11, 12, 13, 14, 0, 6, 18, 24})


def test_win_event_on_every_empty_to_nonempty_edge():
    state = mark_all(fresh(), [0, 1, 2, 3])
    result = game.toggle_with_event(state, 4)
    assert result.new_win is True

    # a second line while already won is not a new win
    state = mark_all(result.state, [5, 10, 15])
    result = game.toggle_with_event(state, 20)
    assert result.new_win is False
    assert result.state.won_patterns == frozenset({"row-0", "col-0"})

    # dropping back to no lines and winning again notifies again
    state = game.toggle(result.state, 0)
    assert not game.is_won(state)
    result = game.toggle_with_event(state, 0)
    assert result.new_win is True
    assert result.state.completed_at == state.completed_at


def test_recompute_rederives_patterns_and_free_cell():
    raw = GameState(
        card_id="c",
        marked=frozenset({0, 1, 2, 3, 4, 99}),
        won_patterns=frozenset({"col-4"}),
        started_at=1,
    )
    state = game.recompute(raw)
    assert state.marked == frozenset({0, 1, 2, 3, 4, 12})
    assert state.won_patterns == frozenset({"row-0"})


indices = st.integers(min_value=0, max_value=24)


@given(moves=st.lists(indices, max_size=60), i=indices.filter(lambda x: x != 12))
def test_double_toggle_restores_marks(moves, i):
    state = mark_all(fresh(), moves)
    again = game.toggle(game.toggle(state, i), i)
    assert again.marked == state.marked
    assert again.won_patterns == state.won_patterns


@given(moves=st.lists(indices, max_size=80))
def test_invariants_hold_in_every_reachable_state(moves):
    state = fresh()
    for i in moves:
        previous = state.completed_at
        state = game.toggle(state, i, now=5000)
        assert 12 in state.marked
        assert state.won_patterns == game.won_pattern_ids(state.marked)
        if previous is not None:
            assert state.completed_at == previous
        if state.won_patterns:
            assert state.completed_at is not None
