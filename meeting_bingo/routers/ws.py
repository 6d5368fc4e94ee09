from __future__ import annotations
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ..errors import BingoError
from ..managers.game import GameManager
from ..schemas import (
    StartGame, StartListening, ToggleSquare, TranscriptError,
    TranscriptEvent, TranscriptSegment,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _dispatch(games: GameManager, game_id: str, data: dict, reply):
    if not isinstance(data, dict):
        raise ValueError("Messages must be JSON objects")
    kind = data.get("type")
    game = games.get_or_create(game_id)
    if kind == 'start':
        await game.start(StartGame.model_validate(data).categoryId)
    elif kind == 'newCard':
        await game.new_card()
    elif kind == 'reset':
        await game.reset()
    elif kind == 'toggle':
        body = ToggleSquare.model_validate(data)
        await game.toggle_square(body.row, body.col)
    elif kind == 'listen':
        await game.start_listening(StartListening.model_validate(data).speechSupported)
    elif kind == 'stopListening':
        await game.stop_listening()
    elif kind == 'segment':
        body = TranscriptSegment.model_validate(data)
        game.push_event(TranscriptEvent(kind='segment', text=body.text, isFinal=body.isFinal))
    elif kind == 'error':
        game.push_event(TranscriptEvent(kind='error', error=TranscriptError.model_validate(data).error))
    elif kind == 'ended':
        game.push_event(TranscriptEvent(kind='ended'))
    elif kind == 'share':
        await reply('game:shareText', { 'text': game.share_text() })
    else:
        raise ValueError(f"Unknown message type: {kind!r}")


@router.websocket("/{game_id}")
async def websocket_endpoint(websocket: WebSocket, game_id: str):
    await websocket.accept()
    games: GameManager = websocket.app.state.games
    game = games.get_or_create(game_id)

    async def forward(event, payload):
        await websocket.send_json({ "type": event, "data": payload })

    game.add_listener(forward)
    logger.info("WebSocket client joined game %s", game_id)
    try:
        # Send initial state to the client
        await forward('game:state', game.session.update().model_dump())
        while True:
            try:
                data = await websocket.receive_json()
                await _dispatch(games, game_id, data, forward)
            except (ValidationError, BingoError, ValueError) as e:
                await forward('game:error', { 'error': type(e).__name__, 'message': str(e) })
    except WebSocketDisconnect:
        logger.info("WebSocket client left game %s", game_id)
    finally:
        game.remove_listener(forward)
        if game.feed.is_listening and not game.has_listeners:
            await game.stop_listening()
