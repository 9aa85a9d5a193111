"""
Client registry module.

Fixed-capacity table of chat sessions. The table and the id counter are
the only shared mutable state on the server; both are guarded by a single
asyncio.Lock, and callers only ever receive copies of session state.

Deliveries (deliver_except / deliver_to) write to every recipient and
await drain() while that lock is held, so one slow reader delays every
other registry operation until its buffer drains.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional

from common.constants import MAX_SESSIONS
from common.protocol_definitions import default_name, truncate_name
from server.utils.logger import logger


class RegistryError(Exception):
    """Base class for registry failures."""


class RegistryFull(RegistryError):
    """Every slot in the table holds a live session."""


class RegistryClosed(RegistryError):
    """The registry was shut down and takes no new sessions."""


class SessionNotFound(RegistryError):
    """No live session carries the requested id."""


@dataclass
class Session:
    """One slot of the registry table."""
    slot: int
    id: int = 0
    display_name: str = ''
    writer: Optional[asyncio.StreamWriter] = None
    alive: bool = False

    def reset(self):
        """Clear the slot so a later occupant inherits nothing."""
        self.id = 0
        self.display_name = ''
        self.writer = None
        self.alive = False


@dataclass(frozen=True)
class SessionInfo:
    """Read-only view of a live session."""
    id: int
    display_name: str


class ClientRegistry:
    """Bounded table of live sessions."""

    def __init__(self, capacity: int = MAX_SESSIONS):
        self.capacity = capacity
        self._slots = [Session(slot=i) for i in range(capacity)]
        self._next_id = 1
        self._closed = False
        self._lock = asyncio.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    async def register(self, writer: asyncio.StreamWriter) -> SessionInfo:
        """
        Claim a free slot for a new connection.

        Raises:
            RegistryFull: every slot is live; the table is left unchanged
            RegistryClosed: shutdown already started
        """
        async with self._lock:
            if self._closed:
                raise RegistryClosed("registry is shut down")
            session = self._find_free_slot()
            if session is None:
                raise RegistryFull(f"all {self.capacity} slots are in use")
            session.id = self._next_id
            self._next_id += 1
            session.display_name = default_name(session.id)
            session.writer = writer
            session.alive = True
            return SessionInfo(session.id, session.display_name)

    async def unregister(self, session_id: int) -> bool:
        """
        Mark a session dead, close its writer and free its slot.

        Idempotent: returns False when the id is not live.
        """
        async with self._lock:
            session = self._find_live(session_id)
            if session is None:
                return False
            writer = session.writer
            session.reset()
            if writer is not None:
                writer.close()
            return True

    async def rename(self, session_id: int, new_name: str) -> str:
        """
        Replace a session's display name, truncated to the maximum length.

        Returns:
            The name as stored
        """
        async with self._lock:
            session = self._find_live(session_id)
            if session is None:
                raise SessionNotFound(f"id={session_id}")
            session.display_name = truncate_name(new_name)
            return session.display_name

    async def lookup_by_id(self, session_id: int) -> SessionInfo:
        async with self._lock:
            session = self._find_live(session_id)
            if session is None:
                raise SessionNotFound(f"id={session_id}")
            return SessionInfo(session.id, session.display_name)

    async def snapshot(self) -> List[SessionInfo]:
        """All live sessions at one instant, in table order."""
        async with self._lock:
            return [SessionInfo(s.id, s.display_name) for s in self._slots if s.alive]

    async def count(self) -> int:
        async with self._lock:
            return sum(1 for s in self._slots if s.alive)

    async def deliver_except(self, data: bytes, exclude_id: Optional[int] = None) -> int:
        """
        Write data to every live session except exclude_id.

        Returns:
            Number of sessions the data was written to
        """
        delivered = 0
        async with self._lock:
            for session in self._slots:
                if not session.alive or session.id == exclude_id:
                    continue
                if await self._write(session, data):
                    delivered += 1
        return delivered

    async def deliver_to(self, session_id: int, data: bytes) -> bool:
        """Write data to one session; a vanished session is a silent no-op."""
        async with self._lock:
            session = self._find_live(session_id)
            if session is None:
                return False
            return await self._write(session, data)

    async def close_all(self, notice: bytes) -> int:
        """
        Refuse further registrations, then send notice to and close every
        live session. The notice is queued without waiting for it to drain.

        Returns:
            Number of sessions closed
        """
        closed = 0
        async with self._lock:
            self._closed = True
            for session in self._slots:
                if not session.alive:
                    continue
                writer = session.writer
                session.reset()
                try:
                    writer.write(notice)
                except (ConnectionError, OSError) as e:
                    logger.warning(f"Failed to send shutdown notice to slot {session.slot}: {e}")
                writer.close()
                closed += 1
        return closed

    def _find_free_slot(self) -> Optional[Session]:
        for session in self._slots:
            if not session.alive:
                return session
        return None

    def _find_live(self, session_id: int) -> Optional[Session]:
        for session in self._slots:
            if session.alive and session.id == session_id:
                return session
        return None

    async def _write(self, session: Session, data: bytes) -> bool:
        try:
            session.writer.write(data)
            await session.writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            logger.warning(f"Failed to deliver to id={session.id}: {e}")
            return False
