from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

FREE_SPACE = 'FREE'
GRID_SIZE = 5
CARD_WORD_COUNT = GRID_SIZE * GRID_SIZE - 1

class Category(BaseModel):
    id: str
    name: str
    description: str = ''
    icon: str = ''
    words: List[str] = []

class Square(BaseModel):
    id: str
    word: str
    row: int
    col: int
    isFilled: bool = False
    isAutoFilled: bool = False
    isFreeSpace: bool = False
    # epoch milliseconds
    filledAt: Optional[int] = None

class Card(BaseModel):
    squares: List[List[Square]]
    words: List[str] = []

LineType = Literal['row', 'column', 'diagonal']

class WinningLine(BaseModel):
    type: LineType
    index: int
    squares: List[Square]

class NearWinInfo(BaseModel):
    line: str
    type: LineType
    index: int
    needed: int
    neededWords: List[str] = []
    neededSquareIds: List[str] = []

# 'setup' is reserved; no transition ever enters it
GameStatus = Literal['idle', 'setup', 'playing', 'won']

class GameState(BaseModel):
    status: GameStatus = 'idle'
    category: Optional[str] = None
    card: Optional[Card] = None
    isListening: bool = False
    startedAt: Optional[int] = None
    completedAt: Optional[int] = None
    winningLine: Optional[WinningLine] = None
    winningWord: Optional[str] = None
    filledCount: int = 0

class GameUpdate(BaseModel):
    state: GameState
    nearWins: List[NearWinInfo] = []
    closest: Optional[NearWinInfo] = None
    recentDetections: List[str] = []

TranscriptEventKind = Literal['segment', 'error', 'ended']

class TranscriptEvent(BaseModel):
    kind: TranscriptEventKind
    text: str = ''
    isFinal: bool = True
    error: Optional[str] = None

class TranscriptState(BaseModel):
    isSupported: bool
    isListening: bool = False
    transcript: str = ''
    interimTranscript: str = ''
    error: Optional[str] = None

# Inbound payloads

class StartGame(BaseModel):
    categoryId: str

class ToggleSquare(BaseModel):
    row: int
    col: int

class StartListening(BaseModel):
    speechSupported: bool = True

class TranscriptSegment(BaseModel):
    text: str
    isFinal: bool = True

class TranscriptError(BaseModel):
    error: str = Field(..., min_length=1)
