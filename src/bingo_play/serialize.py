from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping

from .errors import StorageError
from .models import CELL_COUNT, CENTER_INDEX, Card, GameState

BUNDLE_VERSION = 1


def ensure_parent(path: Path, *, mkdirs: bool) -> None:
    parent = path.parent
    if not parent.exists() and mkdirs:
        parent.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: object, *, mkdirs: bool = True) -> None:
    """Write through a temp file in the same directory, then rename over."""
    ensure_parent(path, mkdirs=mkdirs)
    text = json.dumps(data, ensure_ascii=False, indent=2)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def card_to_dict(card: Card) -> Dict[str, Any]:
    return {
        "id": card.id,
        "title": card.title,
        "items": list(card.cells),
        "createdAt": card.created_at,
        "lastPlayed": card.last_played_at,
        "playCount": card.play_count,
        "imported": card.imported,
    }


def card_from_dict(data: Mapping[str, Any]) -> Card:
    try:
        card = Card(
            id=str(data["id"]),
            title=str(data["title"]),
            cells=tuple(str(item) for item in data["items"]),
            created_at=int(data["createdAt"]),
            last_played_at=int(data.get("lastPlayed", data["createdAt"])),
            play_count=int(data.get("playCount", 0)),
            imported=bool(data.get("imported", False)),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise StorageError(f"Malformed card record: {exc}") from exc
    if len(card.cells) != CELL_COUNT:
        raise StorageError(f"Card {card.id} has {len(card.cells)} items, expected {CELL_COUNT}")
    return card


def state_to_dict(state: GameState) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "gameId": state.card_id,
        "markedSquares": sorted(state.marked),
        "wonPatterns": sorted(state.won_patterns),
        "startedAt": state.started_at,
    }
    if state.completed_at is not None:
        data["completedAt"] = state.completed_at
    return data


def state_from_dict(data: Mapping[str, Any]) -> GameState:
    """Raw state as stored; callers re-derive won patterns via game.recompute."""
    try:
        completed = data.get("completedAt")
        return GameState(
            card_id=str(data["gameId"]),
            marked=frozenset(int(i) for i in data.get("markedSquares", [CENTER_INDEX])),
            won_patterns=frozenset(str(p) for p in data.get("wonPatterns", [])),
            started_at=int(data["startedAt"]),
            completed_at=None if completed is None else int(completed),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise StorageError(f"Malformed game state record: {exc}") from exc
