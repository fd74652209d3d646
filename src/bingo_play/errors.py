from __future__ import annotations


class BingoError(Exception):
    """Base class for all bingo-play failures."""


class ValidationError(BingoError, ValueError):
    pass


class InvalidIndexError(BingoError, IndexError):
    pass


class DecodeError(BingoError, ValueError):
    """Share token is malformed or cannot be inverted."""


class StorageError(BingoError):
    pass


class CardNotFoundError(BingoError, KeyError):
    def __init__(self, card_id: str):
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Card not found: {self.card_id}"
