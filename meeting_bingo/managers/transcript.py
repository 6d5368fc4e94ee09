from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Protocol

from ..config import settings
from ..errors import TranscriptSourceUnavailable
from ..game_logic import GameSession
from ..schemas import TranscriptEvent, TranscriptState

logger = logging.getLogger(__name__)

# Expected when a recognizer is stopped on purpose
ABORTED = 'aborted'

_CLOSED = object()


class TranscriptSource(Protocol):
    def is_available(self) -> bool: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    def events(self) -> AsyncIterator[TranscriptEvent]: ...


class ClientTranscriptSource:
    """Transcript events pushed by a client that runs the speech recognizer.

    Events are queued in arrival order. After ``stop()`` new pushes are
    rejected, while events queued before it are still delivered.
    """

    def __init__(
        self,
        available: bool = True,
        on_start: Optional[Callable[[], Awaitable[None]]] = None,
        on_stop: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.available = available
        self.on_start = on_start
        self.on_stop = on_stop
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = True
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def is_available(self) -> bool:
        return self.available

    @property
    def is_open(self) -> bool:
        return not self._closed

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        # nothing left over from an earlier run is replayed
        while not self._queue.empty():
            self._queue.get_nowait()
        self._closed = False
        if self.on_start:
            await self.on_start()

    async def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        if self.on_stop:
            await self.on_stop()

    def push(self, event: TranscriptEvent) -> bool:
        if self._closed:
            return False
        self._queue.put_nowait(event)
        return True

    def push_threadsafe(self, event: TranscriptEvent) -> bool:
        """Hand an event over from a capture thread to the owning event loop."""
        loop = self._loop
        if loop is None or self._closed:
            return False
        loop.call_soon_threadsafe(self.push, event)
        return True

    async def events(self) -> AsyncIterator[TranscriptEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


@dataclass
class RestartPolicy:
    enabled: bool = True
    delay_ms: int = 100
    max_restarts: Optional[int] = None

    @classmethod
    def from_settings(cls, conf=settings) -> 'RestartPolicy':
        return cls(enabled=conf.auto_restart, delay_ms=conf.restart_delay_ms)

    def allows(self, restarts: int) -> bool:
        if not self.enabled:
            return False
        return self.max_restarts is None or restarts < self.max_restarts


@dataclass
class TranscriptBuffer:
    is_supported: bool = True
    is_listening: bool = False
    transcript: str = ''
    interim: str = ''
    error: Optional[str] = None

    def clear(self):
        self.transcript = ''
        self.interim = ''
        self.error = None

    def snapshot(self) -> TranscriptState:
        return TranscriptState(
            isSupported=self.is_supported,
            isListening=self.is_listening,
            transcript=self.transcript,
            interimTranscript=self.interim,
            error=self.error,
        )


EventHandler = Callable[[TranscriptEvent, List[str]], Awaitable[None]]


class TranscriptFeed:
    """Applies a transcript source to a session, one event at a time.

    A single consumer task drains the source, so each final segment's
    detection, fill and win check finish before the next segment is read.
    """

    def __init__(
        self,
        session: GameSession,
        source: TranscriptSource,
        on_event: Optional[EventHandler] = None,
        policy: Optional[RestartPolicy] = None,
    ):
        self.session = session
        self.source = source
        self.on_event = on_event
        self.policy = policy or RestartPolicy.from_settings()
        self.buffer = TranscriptBuffer(is_supported=source.is_available())
        self.restarts = 0
        self._wanted = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_listening(self) -> bool:
        return self._wanted

    async def start(self):
        self.buffer.is_supported = self.source.is_available()
        if not self.buffer.is_supported:
            raise TranscriptSourceUnavailable("No transcript source on this host")
        if self._wanted:
            return
        # let a consumer from the previous run finish draining
        if self._task is not None and not self._task.done():
            await self._task
        self._wanted = True
        self.restarts = 0
        self.buffer.clear()
        self.buffer.is_listening = True
        self.session.set_listening(True)
        await self.source.start()
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        self._wanted = False
        self.buffer.is_listening = False
        self.session.set_listening(False)
        await self.source.stop()

    async def join(self):
        """Wait until every event delivered before ``stop()`` has been handled."""
        if self._task is not None:
            await self._task

    async def _run(self):
        try:
            async for event in self.source.events():
                await self._handle(event)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Transcript consumer failed")
            await self.stop()

    async def _handle(self, event: TranscriptEvent):
        detected: List[str] = []
        if event.kind == 'segment':
            if event.isFinal:
                self.buffer.transcript += event.text
                self.buffer.interim = ''
                detected = self.session.apply_transcript(event.text)
            else:
                self.buffer.interim = event.text
        elif event.kind == 'error':
            if event.error == ABORTED:
                return
            logger.warning("Transcript source error: %s", event.error)
            self.buffer.error = event.error
            await self.stop()
        elif event.kind == 'ended':
            await self._on_ended()

        if self.on_event:
            await self.on_event(event, detected)

        if self._wanted and self.session.status == 'won':
            await self.stop()

    async def _on_ended(self):
        if not self._wanted:
            self.buffer.is_listening = False
            return
        if not self.policy.allows(self.restarts):
            logger.info("Transcript source ended, not restarting")
            await self.stop()
            return
        await asyncio.sleep(self.policy.delay_ms / 1000)
        if not self._wanted:
            return
        self.restarts += 1
        try:
            await self.source.start()
        except Exception as e:
            logger.warning("Failed to restart transcript source: %s", e)
            await self.stop()
