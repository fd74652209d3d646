"""Play flows that tie the core to a card store.

The core never touches storage; these helpers load, transform and store
one card/state pair per call.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from . import codec, game
from .errors import CardNotFoundError, ValidationError
from .generator import generate, record_play
from .models import Card, GameState
from .rng import RandomSource
from .storage import CardStore

logger = logging.getLogger(__name__)


def load_card(store: CardStore, card_id: str) -> Card:
    card = store.load_card(card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    return card


def create_card(
    store: CardStore, title: str, items: Sequence[str], *, rng: Optional[RandomSource] = None
) -> Card:
    card = generate(title, items, rng=rng)
    store.store_card(card)
    logger.info("Created card %s (%r)", card.id, card.title)
    return card


def import_token(store: CardStore, token: str, *, rng: Optional[RandomSource] = None) -> Card:
    """Decode a share token into a new, freshly shuffled imported card."""
    shared = codec.decode(codec.coerce_token(token))
    card = generate(shared.title, shared.items, imported=True, rng=rng)
    store.store_card(card)
    logger.info("Imported shared card %r as %s", card.title, card.id)
    return card


def resolve_play(
    store: CardStore,
    *,
    card_id: Optional[str] = None,
    token: Optional[str] = None,
    rng: Optional[RandomSource] = None,
) -> Card:
    """Card to play: a present token always wins over an id."""
    if token:
        return import_token(store, token, rng=rng)
    if not card_id:
        raise ValidationError("Either a card id or a share token is required")
    return load_card(store, card_id)


def start_play(store: CardStore, card_id: str, *, fresh: bool = False) -> Tuple[Card, GameState]:
    """Count a play and return the card with its current (or new) state."""
    card = record_play(load_card(store, card_id))
    store.store_card(card)

    state = None if fresh else store.load_state(card_id)
    if state is None:
        state = game.reset(card_id)
        store.store_state(card_id, state)
    return card, state


def mark(store: CardStore, card_id: str, index: int) -> game.ToggleResult:
    load_card(store, card_id)
    state = store.load_state(card_id) or game.reset(card_id)
    result = game.toggle_with_event(state, index)
    store.store_state(card_id, result.state)
    return result


def reset_play(store: CardStore, card_id: str) -> GameState:
    load_card(store, card_id)
    state = game.reset(card_id)
    store.store_state(card_id, state)
    return state


def delete_card(store: CardStore, card_id: str) -> None:
    load_card(store, card_id)
    store.delete_card(card_id)
    logger.info("Deleted card %s", card_id)
