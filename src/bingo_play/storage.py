"""JSON-file persistence for cards and their game states.

File layout::

    {"games": [card, ...], "states": {card_id: state}, "version": 1}

Card and state records use the camelCase keys of the browser version, so a
`games` export can be copied between the two.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .errors import StorageError
from .game import recompute
from .models import Card, GameState
from .serialize import (
    BUNDLE_VERSION,
    card_from_dict,
    card_to_dict,
    state_from_dict,
    state_to_dict,
    write_json,
)

logger = logging.getLogger(__name__)


class CardStore(Protocol):
    def load_card(self, card_id: str) -> Optional[Card]: ...

    def store_card(self, card: Card) -> None: ...

    def delete_card(self, card_id: str) -> None: ...

    def load_state(self, card_id: str) -> Optional[GameState]: ...

    def store_state(self, card_id: str, state: GameState) -> None: ...


def _empty_bundle() -> Dict[str, Any]:
    return {"games": [], "states": {}, "version": BUNDLE_VERSION}


class JsonCardStore:
    """Card store backed by one JSON file; every call re-reads the file."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return _empty_bundle()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupted store file {self.path}: {exc.msg}") from exc
        except (UnicodeDecodeError, RecursionError) as exc:
            raise StorageError(f"Corrupted store file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Corrupted store file {self.path}: top level is not an object")
        version = data.get("version", BUNDLE_VERSION)
        if not isinstance(version, int) or version > BUNDLE_VERSION:
            raise StorageError(
                f"Store version {version!r} is newer than supported {BUNDLE_VERSION}"
            )
        games = data.setdefault("games", [])
        states = data.setdefault("states", {})
        if not isinstance(games, list) or not all(isinstance(g, dict) for g in games):
            raise StorageError(f"Corrupted store file {self.path}: games must be a list of objects")
        if not isinstance(states, dict):
            raise StorageError(f"Corrupted store file {self.path}: states must be an object")
        data["version"] = BUNDLE_VERSION
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        write_json(self.path, data)
        logger.debug("Wrote %d card(s) to %s", len(data["games"]), self.path)

    def list_cards(self) -> List[Card]:
        return [card_from_dict(record) for record in self._read()["games"]]

    def load_card(self, card_id: str) -> Optional[Card]:
        for record in self._read()["games"]:
            if record.get("id") == card_id:
                return card_from_dict(record)
        return None

    def store_card(self, card: Card) -> None:
        data = self._read()
        record = card_to_dict(card)
        games: List[Dict[str, Any]] = data["games"]
        for pos, existing in enumerate(games):
            if existing.get("id") == card.id:
                games[pos] = record
                break
        else:
            games.append(record)
        self._write(data)

    def delete_card(self, card_id: str) -> None:
        data = self._read()
        data["games"] = [g for g in data["games"] if g.get("id") != card_id]
        data["states"].pop(card_id, None)
        self._write(data)

    def load_state(self, card_id: str) -> Optional[GameState]:
        record = self._read()["states"].get(card_id)
        if record is None:
            return None
        return recompute(state_from_dict(record))

    def store_state(self, card_id: str, state: GameState) -> None:
        data = self._read()
        data["states"][card_id] = state_to_dict(state)
        self._write(data)

    def clear(self) -> None:
        self._write(_empty_bundle())
