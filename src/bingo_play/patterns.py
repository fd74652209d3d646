from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, FrozenSet, Iterable, Tuple

from .models import CELL_COUNT, CENTER_INDEX, GRID_SIZE


@dataclass(frozen=True)
class WinningPattern:
    tag: str  # row | col | diag
    index: int
    cells: Tuple[int, ...]

    @property
    def id(self) -> str:
        return f"{self.tag}-{self.index}"


@lru_cache(maxsize=None)
def patterns() -> Tuple[WinningPattern, ...]:
    """All winning lines of the grid: rows, then columns, then diagonals."""
    out = []
    for row in range(GRID_SIZE):
        out.append(
            WinningPattern("row", row, tuple(row * GRID_SIZE + col for col in range(GRID_SIZE)))
        )
    for col in range(GRID_SIZE):
        out.append(
            WinningPattern("col", col, tuple(row * GRID_SIZE + col for row in range(GRID_SIZE)))
        )
    # top-left to bottom-right, then top-right to bottom-left
    out.append(WinningPattern("diag", 0, tuple(i * (GRID_SIZE + 1) for i in range(GRID_SIZE))))
    out.append(
        WinningPattern("diag", 1, tuple((i + 1) * (GRID_SIZE - 1) for i in range(GRID_SIZE)))
    )
    return tuple(out)


@lru_cache(maxsize=None)
def _by_id() -> Dict[str, WinningPattern]:
    return {p.id: p for p in patterns()}


def pattern_by_id(pattern_id: str) -> WinningPattern:
    return _by_id()[pattern_id]


def is_pattern_complete(marked: Iterable[int], pattern: WinningPattern) -> bool:
    marked_set = marked if isinstance(marked, (set, frozenset)) else set(marked)
    return all(cell in marked_set for cell in pattern.cells)


def completed_patterns(marked: Iterable[int]) -> Tuple[WinningPattern, ...]:
    marked_set = frozenset(marked)
    return tuple(p for p in patterns() if is_pattern_complete(marked_set, p))


def cells_in_patterns(pattern_ids: Iterable[str]) -> FrozenSet[int]:
    """Union of the cells covered by the given patterns."""
    cells = set()
    for pid in pattern_ids:
        cells.update(pattern_by_id(pid).cells)
    return frozenset(cells)


def index_to_row_col(index: int) -> Tuple[int, int]:
    return divmod(index, GRID_SIZE)


def row_col_to_index(row: int, col: int) -> int:
    return row * GRID_SIZE + col


def is_center(index: int) -> bool:
    return index == CENTER_INDEX


def is_valid_index(index: object) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < CELL_COUNT
