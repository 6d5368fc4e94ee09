from __future__ import annotations
import logging
import random
from collections import deque
from typing import Callable, Iterable, List, Optional, Set, Union

from .card_generator import generate_card, now_ms
from .config import settings
from .grid_evaluator import all_near_wins, closest_to_win, count_filled, evaluate_win
from .lexicon import LexiconService, service as default_lexicon
from .schemas import Card, Category, GameState, GameUpdate, NearWinInfo, WinningLine
from .word_matcher import detect_with_aliases

logger = logging.getLogger(__name__)


class GameSession:
    """Single-player bingo state machine: idle -> playing -> won.

    Mutations made while no card is active, or after the game is over, are
    ignored rather than raised; they come from callbacks racing a reset.
    """

    def __init__(
        self,
        lexicon: Optional[LexiconService] = None,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
        recent_limit: int = settings.recent_detections,
    ):
        self.lexicon = lexicon or default_lexicon
        self.clock = clock
        self.rng = rng
        self.recent_detections: deque = deque(maxlen=recent_limit)
        self._clear()

    def _clear(self):
        self.status = 'idle'
        self.category: Optional[str] = None
        self.card: Optional[Card] = None
        self.is_listening = False
        self.started_at: Optional[int] = None
        self.completed_at: Optional[int] = None
        self.winning_line: Optional[WinningLine] = None
        self.winning_word: Optional[str] = None
        self.filled_count = 0
        self.recent_detections.clear()

    @property
    def is_playing(self) -> bool:
        return self.status == 'playing' and self.card is not None

    def start(self, category: Union[Category, str]):
        if isinstance(category, str):
            category = self.lexicon.get_category(category)
        card = generate_card(category, self.rng)
        self._clear()
        self.status = 'playing'
        self.category = category.id
        self.card = card
        self.filled_count = 1  # free space
        self.started_at = self.clock()
        logger.info("Game started in category %s", category.id)

    def new_card(self) -> bool:
        """Deal a fresh card in the current category, keeping the game running."""
        if self.card is None or not self.category or self.status not in ('playing', 'won'):
            logger.debug("Ignoring new card request while %s", self.status)
            return False
        category = self.lexicon.get_category(self.category)
        self.card = generate_card(category, self.rng)
        self.status = 'playing'
        self.filled_count = 1
        self.winning_line = None
        self.winning_word = None
        self.completed_at = None
        self.started_at = self.clock() if self.is_listening else None
        self.recent_detections.clear()
        return True

    def reset(self):
        self._clear()
        logger.info("Game reset")

    def set_listening(self, listening: bool):
        self.is_listening = listening
        if listening and self.started_at is None:
            self.started_at = self.clock()

    def card_words(self) -> List[str]:
        return list(self.card.words) if self.card else []

    def filled_words(self) -> Set[str]:
        if not self.card:
            return set()
        return {
            sq.word.lower()
            for row in self.card.squares
            for sq in row
            if sq.isFilled and not sq.isFreeSpace
        }

    def apply_transcript(self, text: str) -> List[str]:
        """Detect card words in a final transcript segment and fill them."""
        if not self.is_playing:
            logger.debug("Ignoring transcript while %s", self.status)
            return []
        detected = detect_with_aliases(
            text, self.card_words(), self.filled_words(), self.lexicon.aliases
        )
        if not detected:
            return []
        self.recent_detections.extend(detected)
        return self.apply_detected_words(detected)

    def apply_detected_words(self, words: Iterable[str]) -> List[str]:
        if not self.is_playing:
            logger.debug("Ignoring detected words while %s", self.status)
            return []
        wanted = {w.lower() for w in words}
        if not wanted:
            return []

        filled: List[str] = []
        stamp = self.clock()
        for row in self.card.squares:
            for sq in row:
                if sq.isFilled or sq.isFreeSpace:
                    continue
                if sq.word.lower() in wanted:
                    sq.isFilled = True
                    sq.isAutoFilled = True
                    sq.filledAt = stamp
                    filled.append(sq.word)

        if filled:
            logger.debug("Auto-filled %s", ", ".join(filled))
            # last match in grid scan order is the recorded winning word
            self._after_mutation(filled[-1])
        return filled

    def toggle_square(self, row: int, col: int) -> bool:
        if not self.is_playing:
            logger.debug("Ignoring toggle while %s", self.status)
            return False
        if not (0 <= row < len(self.card.squares) and 0 <= col < len(self.card.squares[row])):
            return False
        sq = self.card.squares[row][col]
        if sq.isFreeSpace:
            return False

        sq.isFilled = not sq.isFilled
        sq.isAutoFilled = False
        sq.filledAt = self.clock() if sq.isFilled else None
        self._after_mutation(sq.word)
        return True

    def _after_mutation(self, word: str):
        self.filled_count = count_filled(self.card.squares)
        line = evaluate_win(self.card.squares)
        if line is None:
            return
        self.status = 'won'
        self.completed_at = self.clock()
        self.winning_line = line
        self.winning_word = word
        self.is_listening = False
        logger.info("Bingo on %s %d with %r", line.type, line.index, word)

    def check_win(self) -> Optional[WinningLine]:
        if not self.card:
            return None
        return evaluate_win(self.card.squares)

    def near_wins(self) -> List[NearWinInfo]:
        return all_near_wins(self.card.squares) if self.card else []

    def closest_to_win(self) -> Optional[NearWinInfo]:
        return closest_to_win(self.card.squares) if self.card else None

    def snapshot(self) -> GameState:
        state = GameState(
            status=self.status,  # type: ignore
            category=self.category,
            card=self.card,
            isListening=self.is_listening,
            startedAt=self.started_at,
            completedAt=self.completed_at,
            winningLine=self.winning_line,
            winningWord=self.winning_word,
            filledCount=self.filled_count,
        )
        return state.model_copy(deep=True)

    def update(self) -> GameUpdate:
        return GameUpdate(
            state=self.snapshot(),
            nearWins=self.near_wins() if self.status == 'playing' else [],
            closest=self.closest_to_win() if self.status == 'playing' else None,
            recentDetections=list(self.recent_detections),
        )

    @classmethod
    def restore(cls, state: GameState, **kwargs) -> 'GameSession':
        session = cls(**kwargs)
        if state.status not in ('playing', 'won') or state.card is None:
            return session
        if state.status == 'won' and state.winningLine is None:
            return session
        if state.category and session.lexicon.find_category(state.category) is None:
            return session
        restored = state.model_copy(deep=True)
        try:
            filled_count = count_filled(restored.card.squares)
        except ValueError:
            return session
        session.status = restored.status
        session.category = restored.category
        session.card = restored.card
        session.started_at = restored.startedAt
        session.completed_at = restored.completedAt
        session.winning_line = restored.winningLine
        session.winning_word = restored.winningWord
        session.filled_count = filled_count
        return session
