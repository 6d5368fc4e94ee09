from __future__ import annotations
import logging
from typing import Dict, List

import socketio
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .config import settings
from .errors import BingoError, CategoryNotFound
from .lexicon import service as lexicon
from .managers.game import GameManager
from .managers.transcript import RestartPolicy
from .routers import ws
from .schemas import (
    Category, GameState, StartGame, StartListening, ToggleSquare,
    TranscriptError, TranscriptEvent, TranscriptSegment,
)
from .storage import SessionStore

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Socket.IO server (ASGI)
sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins='*')
app = FastAPI(title="Meeting Bingo Server", version="0.1.0")

# Mount Socket.IO ASGI application
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)

# CORS for REST
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

store = SessionStore(settings.data_dir) if settings.persist_sessions else None
games = GameManager(sio, store=store, lexicon=lexicon, policy=RestartPolicy.from_settings())
app.state.games = games
app.include_router(ws.router, prefix='/ws')

# REST Endpoints
@app.get('/health')
async def health():
    return { 'status': 'ok', 'games': len(games.games) }

@app.get('/categories')
async def list_categories() -> Dict[str, List[Category]]:
    return { 'categories': lexicon.list_categories() }

@app.get('/categories/{category_id}', response_model=Category)
async def get_category(category_id: str):
    try:
        return lexicon.get_category(category_id)
    except CategoryNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

@app.get('/games/{game_id}/state', response_model=GameState)
async def game_state(game_id: str):
    return games.get_state(game_id)

@app.get('/games/{game_id}/share')
async def share(game_id: str):
    text = games.share_text(game_id)
    if text is None:
        raise HTTPException(status_code=409, detail='Game is not won yet')
    return { 'text': text }

# Socket.IO Events
@sio.event
async def connect(sid, environ, auth=None):
    await sio.save_session(sid, { 'game_id': None })
    await sio.emit('pong', to=sid)

@sio.event
async def disconnect(sid):
    sess = await sio.get_session(sid)
    game_id = sess.get('game_id') if sess else None
    if game_id:
        await games.on_disconnect(game_id)

@sio.on('ping')
async def on_ping(sid):
    await sio.emit('pong', to=sid)

async def _game_id(sid):
    sess = await sio.get_session(sid)
    return sess.get('game_id') if sess else None

async def _report(sid, error: Exception):
    await sio.emit('game:error', { 'error': type(error).__name__, 'message': str(error) }, to=sid)

@sio.on('join-game')
async def join_game(sid, game_id: str):
    if not isinstance(game_id, str) or not game_id.strip():
        return
    game_id = game_id.strip()
    await sio.enter_room(sid, game_id)
    sess = await sio.get_session(sid) or {}
    await sio.save_session(sid, { **sess, 'game_id': game_id })
    logger.info("Client %s joined game %s", sid, game_id)
    await games.join(game_id)

@sio.on('game:start')
async def game_start(sid, payload):
    game_id = await _game_id(sid)
    if not game_id:
        return
    try:
        body = StartGame.model_validate(payload)
        await games.start_game(game_id, body.categoryId)
    except (ValidationError, BingoError) as e:
        await _report(sid, e)

@sio.on('game:newCard')
async def new_card(sid):
    game_id = await _game_id(sid)
    if game_id:
        await games.new_card(game_id)

@sio.on('game:reset')
async def reset_game(sid):
    game_id = await _game_id(sid)
    if game_id:
        await games.reset_game(game_id)

@sio.on('square:toggle')
async def toggle_square(sid, payload):
    game_id = await _game_id(sid)
    if not game_id:
        return
    try:
        body = ToggleSquare.model_validate(payload)
    except ValidationError as e:
        await _report(sid, e)
        return
    await games.toggle_square(game_id, body.row, body.col)

@sio.on('listening:start')
async def listening_start(sid, payload=None):
    game_id = await _game_id(sid)
    if not game_id:
        return
    try:
        body = StartListening.model_validate(payload or {})
    except ValidationError as e:
        await _report(sid, e)
        return
    await games.start_listening(game_id, body.speechSupported)

@sio.on('listening:stop')
async def listening_stop(sid):
    game_id = await _game_id(sid)
    if game_id:
        await games.stop_listening(game_id)

@sio.on('transcript:segment')
async def transcript_segment(sid, payload):
    game_id = await _game_id(sid)
    if not game_id:
        return
    try:
        body = TranscriptSegment.model_validate(payload)
    except ValidationError as e:
        await _report(sid, e)
        return
    games.push_event(game_id, TranscriptEvent(kind='segment', text=body.text, isFinal=body.isFinal))

@sio.on('transcript:error')
async def transcript_error(sid, payload):
    game_id = await _game_id(sid)
    if not game_id:
        return
    try:
        body = TranscriptError.model_validate(payload)
    except ValidationError as e:
        await _report(sid, e)
        return
    games.push_event(game_id, TranscriptEvent(kind='error', error=body.error))

@sio.on('transcript:ended')
async def transcript_ended(sid):
    game_id = await _game_id(sid)
    if game_id:
        games.push_event(game_id, TranscriptEvent(kind='ended'))

@sio.on('game:share')
async def game_share(sid):
    game_id = await _game_id(sid)
    if not game_id:
        return
    await sio.emit('game:shareText', { 'text': games.share_text(game_id) }, to=sid)

# Export ASGI app for uvicorn
application = asgi_app

# For local running: uvicorn meeting_bingo.main:application --reload --host 0.0.0.0 --port 8000
if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'meeting_bingo.main:application',
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
