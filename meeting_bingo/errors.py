from __future__ import annotations


class BingoError(Exception):
    """Base class for errors raised by the bingo engine."""


class CategoryNotFound(BingoError, LookupError):
    def __init__(self, category_id: str):
        super().__init__(f"Unknown category: {category_id}")
        self.category_id = category_id


class InsufficientWordPool(BingoError, ValueError):
    def __init__(self, category_id: str, available: int, required: int):
        super().__init__(
            f"Category {category_id!r} has {available} distinct words, {required} required"
        )
        self.category_id = category_id
        self.available = available
        self.required = required


class TranscriptSourceUnavailable(BingoError):
    """The host has no speech-to-text capability; manual play only."""
