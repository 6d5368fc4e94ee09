from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config import settings
from ..errors import TranscriptSourceUnavailable
from ..game_logic import GameSession
from ..lexicon import LexiconService, service as default_lexicon
from ..schemas import GameState, TranscriptEvent
from ..share import generate_share_text
from ..storage import SessionStore
from .transcript import ClientTranscriptSource, RestartPolicy, TranscriptFeed

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], Awaitable[None]]


class Game:
    def __init__(
        self,
        game_id: str,
        sio,
        store: Optional[SessionStore] = None,
        lexicon: Optional[LexiconService] = None,
        policy: Optional[RestartPolicy] = None,
        session: Optional[GameSession] = None,
    ):
        self.id = game_id
        self.sio = sio
        self.store = store
        self.lexicon = lexicon or default_lexicon
        self.session = session or GameSession(lexicon=self.lexicon)
        # availability is reported by the client when it asks to listen
        self.source = ClientTranscriptSource(
            available=False,
            on_start=self._on_source_start,
            on_stop=self._on_source_stop,
        )
        self.feed = TranscriptFeed(self.session, self.source, self._on_transcript, policy)
        self._listeners: List[Listener] = []
        self._unavailable_reported = False

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    async def emit(self, event: str, payload: Any = None):
        await self.sio.emit(event, payload, room=self.id)
        for listener in list(self._listeners):
            await listener(event, payload)

    def to_state(self) -> GameState:
        return self.session.snapshot()

    async def broadcast_state(self):
        update = self.session.update()
        self._persist(update.state)
        await self.emit('game:state', update.model_dump())

    def _persist(self, state: GameState):
        if self.store is None:
            return
        try:
            self.store.save(self.id, state)
        except OSError as e:
            logger.warning("Could not persist game %s: %s", self.id, e)

    async def start(self, category_id: str):
        await self.feed.stop()
        await self.feed.join()
        self.session.start(category_id)
        self.feed.buffer.clear()
        await self.broadcast_state()

    async def new_card(self):
        if self.session.new_card():
            self.feed.buffer.clear()
            await self.broadcast_state()

    async def reset(self):
        await self.feed.stop()
        await self.feed.join()
        self.session.reset()
        self.feed.buffer.clear()
        await self.broadcast_state()

    async def toggle_square(self, row: int, col: int):
        if not self.session.toggle_square(row, col):
            return
        if self.session.status == 'won':
            await self.feed.stop()
            await self._announce_win()
        await self.broadcast_state()

    async def start_listening(self, speech_supported: bool = True):
        self.source.available = speech_supported
        if not self.session.is_playing:
            return
        try:
            await self.feed.start()
        except TranscriptSourceUnavailable:
            if not self._unavailable_reported:
                self._unavailable_reported = True
                logger.warning("Game %s: speech recognition unavailable, manual play only", self.id)
                await self.emit('transcript:unavailable', {
                    'message': 'Speech recognition is not supported; tap squares to play.',
                })
            return
        await self.emit('transcript:state', self.feed.buffer.snapshot().model_dump())
        await self.broadcast_state()

    async def stop_listening(self):
        await self.feed.stop()
        await self.emit('transcript:state', self.feed.buffer.snapshot().model_dump())
        await self.broadcast_state()

    def push_event(self, event: TranscriptEvent) -> bool:
        accepted = self.source.push(event)
        if not accepted:
            logger.debug("Game %s: dropped %s event, not listening", self.id, event.kind)
        return accepted

    def share_text(self) -> Optional[str]:
        state = self.session.snapshot()
        if state.status != 'won':
            return None
        return generate_share_text(state, self.lexicon.category_name(state.category))

    async def _announce_win(self):
        line = self.session.winning_line
        await self.emit('game:won', {
            'winningLine': line.model_dump() if line else None,
            'winningWord': self.session.winning_word,
            'shareText': self.share_text(),
        })

    async def _on_transcript(self, event: TranscriptEvent, detected: List[str]):
        if detected:
            await self.emit('words:detected', {'words': detected})
            if self.session.status == 'won':
                await self._announce_win()
        if event.kind == 'error':
            await self.emit('transcript:error', {'error': event.error})
        await self.emit('transcript:state', self.feed.buffer.snapshot().model_dump())
        if detected or event.kind != 'segment' or event.isFinal:
            await self.broadcast_state()

    async def _on_source_start(self):
        await self.emit('transcript:start', {
            'lang': settings.speech_language,
            'continuous': True,
            'interimResults': True,
        })

    async def _on_source_stop(self):
        await self.emit('transcript:stop')


class GameManager:
    def __init__(
        self,
        sio,
        store: Optional[SessionStore] = None,
        lexicon: Optional[LexiconService] = None,
        policy: Optional[RestartPolicy] = None,
    ):
        self.sio = sio
        self.store = store
        self.lexicon = lexicon or default_lexicon
        self.policy = policy
        self.games: Dict[str, Game] = {}

    def get(self, game_id: str) -> Optional[Game]:
        return self.games.get(game_id)

    def get_or_create(self, game_id: str) -> Game:
        if game_id not in self.games:
            session = None
            if self.store is not None:
                session = GameSession.restore(self.store.load(game_id), lexicon=self.lexicon)
            self.games[game_id] = Game(
                game_id, self.sio, self.store, self.lexicon, self.policy, session,
            )
        return self.games[game_id]

    async def join(self, game_id: str):
        game = self.get_or_create(game_id)
        await game.broadcast_state()

    async def start_game(self, game_id: str, category_id: str):
        game = self.get_or_create(game_id)
        await game.start(category_id)

    async def new_card(self, game_id: str):
        await self.get_or_create(game_id).new_card()

    async def reset_game(self, game_id: str):
        await self.get_or_create(game_id).reset()

    async def toggle_square(self, game_id: str, row: int, col: int):
        await self.get_or_create(game_id).toggle_square(row, col)

    async def start_listening(self, game_id: str, speech_supported: bool = True):
        await self.get_or_create(game_id).start_listening(speech_supported)

    async def stop_listening(self, game_id: str):
        game = self.get(game_id)
        if game:
            await game.stop_listening()

    def push_event(self, game_id: str, event: TranscriptEvent) -> bool:
        game = self.get(game_id)
        if not game:
            return False
        return game.push_event(event)

    def get_state(self, game_id: str) -> GameState:
        game = self.get(game_id)
        if game:
            return game.to_state()
        if self.store is None:
            return GameState()
        return GameSession.restore(self.store.load(game_id), lexicon=self.lexicon).snapshot()

    def share_text(self, game_id: str) -> Optional[str]:
        game = self.get(game_id)
        return game.share_text() if game else None

    async def on_disconnect(self, game_id: str):
        game = self.get(game_id)
        if game and game.feed.is_listening:
            await game.stop_listening()
