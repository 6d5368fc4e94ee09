from __future__ import annotations
from typing import Optional

from .schemas import GRID_SIZE, GameState

DEFAULT_CATEGORY_NAME = 'Meeting'
NO_WINNING_WORD = '(none)'


def format_duration(ms: int) -> str:
    total_seconds = max(0, ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def generate_share_text(game: GameState, category_name: Optional[str] = None) -> str:
    name = category_name or DEFAULT_CATEGORY_NAME
    duration = 0
    if game.startedAt is not None and game.completedAt is not None:
        duration = game.completedAt - game.startedAt
    winning_word = f'"{game.winningWord}"' if game.winningWord else NO_WINNING_WORD

    lines = [
        'BINGO! Meeting Bingo',
        f"Time to Bingo: {format_duration(duration)}",
        f"Winning word: {winning_word}",
        f"Squares filled: {game.filledCount}/{GRID_SIZE * GRID_SIZE}",
        f"Category: {name}",
        'Play Meeting Bingo -> meetingbingo.app',
    ]
    return '\n'.join(lines)
