from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from .errors import InvalidIndexError
from .models import CENTER_INDEX, GameState, now_ms
from .patterns import cells_in_patterns, completed_patterns, is_center, is_valid_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    state: GameState
    new_win: bool


def won_pattern_ids(marked: Iterable[int]) -> FrozenSet[str]:
    return frozenset(p.id for p in completed_patterns(marked))


def reset(card_id: str, *, now: Optional[int] = None) -> GameState:
    """Fresh state for a card: only the free cell marked."""
    return GameState(
        card_id=card_id,
        marked=frozenset({CENTER_INDEX}),
        won_patterns=frozenset(),
        started_at=now_ms() if now is None else now,
        completed_at=None,
    )


def recompute(state: GameState) -> GameState:
    """Re-derive won patterns, e.g. for a state read back from storage."""
    marked = frozenset(i for i in state.marked if is_valid_index(i)) | {CENTER_INDEX}
    return dataclasses.replace(state, marked=marked, won_patterns=won_pattern_ids(marked))


def is_won(state: GameState) -> bool:
    return bool(state.won_patterns)


def is_new_win(before: GameState, after: GameState) -> bool:
    """True on every transition from no winning line to at least one."""
    return not before.won_patterns and bool(after.won_patterns)


def toggle(state: GameState, index: int, *, now: Optional[int] = None) -> GameState:
    if not is_valid_index(index):
        raise InvalidIndexError(f"Cell index out of range: {index!r}")
    # the free cell stays marked
    if is_center(index):
        return state

    if index in state.marked:
        marked = state.marked - {index}
    else:
        marked = state.marked | {index}
    won = won_pattern_ids(marked)

    completed_at = state.completed_at
    if completed_at is None and won and not state.won_patterns:
        completed_at = now_ms() if now is None else now

    return dataclasses.replace(
        state, marked=frozenset(marked), won_patterns=won, completed_at=completed_at
    )


def toggle_with_event(state: GameState, index: int, *, now: Optional[int] = None) -> ToggleResult:
    after = toggle(state, index, now=now)
    new_win = is_new_win(state, after)
    if new_win:
        logger.info("Bingo on card %s: %s", state.card_id, ", ".join(sorted(after.won_patterns)))
    return ToggleResult(state=after, new_win=new_win)


def winning_cells(state: GameState) -> FrozenSet[int]:
    return cells_in_patterns(state.won_patterns)
