from __future__ import annotations

import os
import random
import tempfile

# Keep persisted sessions out of the working tree
os.environ.setdefault("BINGO_DATA_DIR", tempfile.mkdtemp(prefix="bingo-sessions-"))

import pytest

from meeting_bingo.lexicon import LexiconService
from meeting_bingo.schemas import FREE_SPACE, Category, Square

FRUITS = [
    "apple", "banana", "cherry", "date", "elderberry", "fig",
    "grape", "guava", "kiwi", "lemon", "lime", "mango",
    "nectarine", "orange", "papaya", "peach", "pear", "plum",
    "quince", "raspberry", "strawberry", "tangerine", "apricot", "blueberry",
    "coconut", "cranberry", "lychee", "melon", "olive", "pomegranate",
]


class FakeClock:
    """Millisecond clock that advances one second per reading."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1000
        return self.now


def make_grid(filled=()):
    """5x5 grid of plain squares; the center is always the filled free space."""
    filled = set(filled)
    grid = []
    for row in range(5):
        squares = []
        for col in range(5):
            free = (row, col) == (2, 2)
            squares.append(Square(
                id=f"{row}-{col}",
                word=FREE_SPACE if free else f"w{row}{col}",
                row=row,
                col=col,
                isFilled=free or (row, col) in filled,
                isFreeSpace=free,
            ))
        grid.append(squares)
    return grid


@pytest.fixture
def fruit_category():
    return Category(id="fruit", name="Fruit Salad", description="Thirty fruits", words=list(FRUITS))


@pytest.fixture
def fruit_lexicon(fruit_category):
    return LexiconService(categories=[fruit_category], aliases={})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def grid_factory():
    return make_grid
