from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from .schemas import GRID_SIZE, LineType, NearWinInfo, Square, WinningLine

Grid = Sequence[Sequence[Square]]


@dataclass
class Line:
    type: LineType
    index: int
    name: str
    squares: List[Square]

    @property
    def filled(self) -> int:
        return sum(1 for sq in self.squares if sq.isFilled)

    def near_win(self) -> NearWinInfo:
        missing = [sq for sq in self.squares if not sq.isFilled]
        return NearWinInfo(
            line=self.name,
            type=self.type,
            index=self.index,
            needed=len(missing),
            neededWords=[sq.word for sq in missing],
            neededSquareIds=[sq.id for sq in missing],
        )


def _check_shape(grid: Grid) -> None:
    if len(grid) != GRID_SIZE or any(len(row) != GRID_SIZE for row in grid):
        raise ValueError(f"Grid must be {GRID_SIZE}x{GRID_SIZE}")


def iter_lines(grid: Grid) -> Iterator[Line]:
    """Yield the 10 lines in scan order: rows, columns, then both diagonals.

    The order is the tie-break for every evaluator below.
    """
    _check_shape(grid)
    span = range(GRID_SIZE)
    for row in span:
        yield Line('row', row, f"Row {row + 1}", list(grid[row]))
    for col in span:
        yield Line('column', col, f"Column {col + 1}", [grid[row][col] for row in span])
    yield Line('diagonal', 0, 'Diagonal', [grid[i][i] for i in span])
    yield Line('diagonal', 1, 'Diagonal', [grid[i][GRID_SIZE - 1 - i] for i in span])


def evaluate_win(grid: Grid) -> Optional[WinningLine]:
    for line in iter_lines(grid):
        if line.filled == GRID_SIZE:
            return WinningLine(type=line.type, index=line.index, squares=line.squares)
    return None


def count_filled(grid: Grid) -> int:
    _check_shape(grid)
    return sum(1 for row in grid for sq in row if sq.isFilled)


def closest_to_win(grid: Grid) -> Optional[NearWinInfo]:
    closest: Optional[Line] = None
    best = GRID_SIZE
    for line in iter_lines(grid):
        needed = GRID_SIZE - line.filled
        # strict < keeps the first line in scan order on ties
        if 0 < needed < best:
            closest, best = line, needed
    return closest.near_win() if closest else None


def all_near_wins(grid: Grid) -> List[NearWinInfo]:
    return [line.near_win() for line in iter_lines(grid) if line.filled == GRID_SIZE - 1]
