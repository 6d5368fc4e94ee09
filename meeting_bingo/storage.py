from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .schemas import GameState

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r'[^A-Za-z0-9_.-]')


class SessionStore:
    """One JSON file per game id. Unreadable data loads as a fresh idle state."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, game_id: str) -> Path:
        return self.directory / f"{_SAFE_ID.sub('_', game_id)}.json"

    def save(self, game_id: str, state: GameState) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(game_id)
        tmp = path.with_suffix('.tmp')
        tmp.write_text(state.model_dump_json(), encoding='utf-8')
        tmp.replace(path)

    def load(self, game_id: str) -> GameState:
        raw = self._read(game_id)
        if raw is None:
            return GameState()
        try:
            return GameState.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding malformed state for %s: %s", game_id, e.error_count())
            return GameState()

    def _read(self, game_id: str) -> Optional[str]:
        path = self._path(game_id)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read stored state %s: %s", path, e)
            return None

    def delete(self, game_id: str) -> None:
        self._path(game_id).unlink(missing_ok=True)
