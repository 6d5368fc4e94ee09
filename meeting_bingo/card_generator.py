from __future__ import annotations
import random
import time
from typing import List, Optional, Sequence, TypeVar

from .errors import InsufficientWordPool
from .lexicon import distinct_words, service as lexicon
from .schemas import CARD_WORD_COUNT, FREE_SPACE, GRID_SIZE, Card, Category, Square

T = TypeVar('T')

CENTER = GRID_SIZE // 2


def now_ms() -> int:
    return int(time.time() * 1000)


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a shuffled copy; ``random.shuffle`` is an unbiased Fisher-Yates."""
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled


def generate_card(category: Category, rng: Optional[random.Random] = None) -> Card:
    pool = distinct_words(category.words)
    if len(pool) < CARD_WORD_COUNT:
        raise InsufficientWordPool(category.id, len(pool), CARD_WORD_COUNT)

    selected = shuffle(pool, rng)[:CARD_WORD_COUNT]
    placed = iter(selected)
    created = now_ms()

    squares = []
    for row in range(GRID_SIZE):
        row_squares = []
        for col in range(GRID_SIZE):
            free = row == CENTER and col == CENTER
            row_squares.append(Square(
                id=f"{row}-{col}",
                word=FREE_SPACE if free else next(placed),
                row=row,
                col=col,
                isFilled=free,
                isFreeSpace=free,
                filledAt=created if free else None,
            ))
        squares.append(row_squares)

    return Card(squares=squares, words=selected)


def generate_card_for(category_id: str, rng: Optional[random.Random] = None) -> Card:
    return generate_card(lexicon.get_category(category_id), rng)
