from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

GRID_SIZE = 5
CELL_COUNT = GRID_SIZE * GRID_SIZE
CENTER_INDEX = CELL_COUNT // 2
MAX_TITLE_LENGTH = 100
MAX_ITEM_LENGTH = 200


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Card:
    id: str
    title: str
    cells: Tuple[str, ...]
    created_at: int
    last_played_at: int
    play_count: int = 0
    imported: bool = False

    @property
    def free_label(self) -> str:
        return self.cells[CENTER_INDEX]

    def rows(self) -> Tuple[Tuple[str, ...], ...]:
        return tuple(
            self.cells[r * GRID_SIZE:(r + 1) * GRID_SIZE] for r in range(GRID_SIZE)
        )


@dataclass(frozen=True)
class GameState:
    """Marks for one card in play.

    `won_patterns` is derived from `marked`; build new states through
    `bingo_play.game` rather than by hand.
    """

    card_id: str
    marked: FrozenSet[int] = field(default_factory=lambda: frozenset({CENTER_INDEX}))
    won_patterns: FrozenSet[str] = field(default_factory=frozenset)
    started_at: int = 0
    completed_at: Optional[int] = None


@dataclass(frozen=True)
class SharedCard:
    """Shareable subset of a card, as carried by a token."""

    title: str
    items: Tuple[str, ...]
