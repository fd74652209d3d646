from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from .errors import ValidationError
from .models import (
    CELL_COUNT,
    CENTER_INDEX,
    MAX_ITEM_LENGTH,
    MAX_TITLE_LENGTH,
    Card,
    now_ms,
)
from .rng import PyRandomSource, RandomSource

logger = logging.getLogger(__name__)


def sanitize_title(title: str) -> str:
    return str(title)[:MAX_TITLE_LENGTH]


def sanitize_items(items: Sequence[str]) -> List[str]:
    return [str(item)[:MAX_ITEM_LENGTH] for item in items]


def validate_content(title: str, items: Sequence[str]) -> None:
    if len(items) != CELL_COUNT:
        raise ValidationError(f"Card must have exactly {CELL_COUNT} items, got {len(items)}")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Card title must be {MAX_TITLE_LENGTH} characters or less")
    if not title.strip():
        raise ValidationError("Card title must not be empty")


def shuffle_cells(cells: Sequence[str], rng: RandomSource) -> Tuple[str, ...]:
    """Fisher-Yates over every position except the free center cell."""
    if len(cells) != CELL_COUNT:
        raise ValidationError(f"Card must have exactly {CELL_COUNT} items, got {len(cells)}")
    positions = [i for i in range(CELL_COUNT) if i != CENTER_INDEX]
    movable = [cells[i] for i in positions]
    for i in range(len(movable) - 1, 0, -1):
        j = rng.randint(0, i)
        movable[i], movable[j] = movable[j], movable[i]

    out = list(cells)
    for pos, label in zip(positions, movable):
        out[pos] = label
    return tuple(out)


def generate(
    title: str,
    items: Sequence[str],
    *,
    imported: bool = False,
    rng: Optional[RandomSource] = None,
    now: Optional[int] = None,
) -> Card:
    """Build a new card with a fresh id and shuffled cells.

    Title and items are truncated to their length bounds before validation.
    Raises ValidationError for a wrong item count or an empty title.
    """
    title = sanitize_title(title)
    cleaned = sanitize_items(items)
    validate_content(title, cleaned)

    rng = rng or PyRandomSource()
    ts = now_ms() if now is None else now
    card = Card(
        id=str(uuid.uuid4()),
        title=title,
        cells=shuffle_cells(cleaned, rng),
        created_at=ts,
        last_played_at=ts,
        play_count=0,
        imported=imported,
    )
    logger.debug("Generated card %s (%r, imported=%s)", card.id, card.title, imported)
    return card


def record_play(card: Card, *, now: Optional[int] = None) -> Card:
    return dataclasses.replace(
        card,
        play_count=card.play_count + 1,
        last_played_at=now_ms() if now is None else now,
    )
