from __future__ import annotations

import pytest

from bingo_play.patterns import (
    cells_in_patterns,
    completed_patterns,
    index_to_row_col,
    is_center,
    pattern_by_id,
    patterns,
    row_col_to_index,
)


def test_catalog_has_twelve_lines_of_five_distinct_cells():
    catalog = patterns()
    assert len(catalog) == 12
    for p in catalog:
        assert len(p.cells) == 5
        assert len(set(p.cells)) == 5
        assert all(0 <= c <= 24 for c in p.cells)
    covered = set()
    for p in catalog:
        covered.update(p.cells)
    assert covered == set(range(25))


def test_catalog_order_and_ids():
    ids = [p.id for p in patterns()]
    assert ids == [
        "row-0", "row-1", "row-2", "row-3", "row-4",
        "col-0", "col-1", "col-2", "col-3", "col-4",
        "diag-0", "diag-1",
    ]


def test_line_contents():
    assert pattern_by_id("row-2").cells == (10, 11, 12, 13, 14)
    assert pattern_by_id("col-3").cells == (3, 8, 13, 18, 23)
    assert pattern_by_id("diag-0").cells == (0, 6, 12, 18, 24)
    assert pattern_by_id("diag-1").cells == (4, 8, 12, 16, 20)


def test_catalog_is_computed_once():
    assert patterns() is patterns()


def test_unknown_pattern_id():
    with pytest.raises(KeyError):
        pattern_by_id("row-5")


def test_completed_patterns_and_cells():
    marked = {0, 1, 2, 3, 4, 12, 6, 18, 24}
    assert [p.id for p in completed_patterns(marked)] == ["row-0", "diag-0"]
    assert cells_in_patterns(["row-0", "diag-0"]) == frozenset({0, 1, 2, 3, 4, 6, 12, 18, 24})
    assert cells_in_patterns([]) == frozenset()


def test_grid_coordinates():
    assert index_to_row_col(12) == (2, 2)
    assert index_to_row_col(19) == (3, 4)
    assert row_col_to_index(3, 4) == 19
    assert is_center(12)
    assert not is_center(13)
