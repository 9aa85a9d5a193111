"""
Chat server module.

This module handles server-side chat messaging functionality: rendering
lines, broadcast and routing through the registry, and the join/leave
announcements around a session's lifetime.
"""

import asyncio
import re
from typing import Optional, Tuple

from common.constants import Replies
from common.protocol_definitions import (
    encode_line, create_welcome_lines, create_join_line, create_leave_line,
    create_rename_line, create_chat_line, create_private_line, create_list_lines
)
from server.registry.client_registry import ClientRegistry, SessionInfo, SessionNotFound
from server.utils.logger import ServerLogger, logger

_LEADING_INT = re.compile(r'[+-]?\d+')


def parse_private_message(argument: str) -> Tuple[int, str]:
    """
    Split a /msg argument into (target id, text).

    The id comes from the leading digits of the first token and is 0 when
    there are none. Exactly one space separates it from the text.
    """
    token, _, text = argument.partition(' ')
    match = _LEADING_INT.match(token)
    target_id = int(match.group(0)) if match else 0
    return target_id, text


class ChatServer:
    """Server-side chat functionality."""

    def __init__(self, registry: ClientRegistry, audit: Optional[ServerLogger] = None):
        self.registry = registry
        self.audit = audit or logger

    async def broadcast_except(self, line: str, exclude_id: Optional[int] = None) -> int:
        """
        Send a rendered line to all live sessions.
        Optionally exclude a specific session by id.
        """
        return await self.registry.deliver_except(encode_line(line), exclude_id)

    async def send_to(self, session_id: int, line: str) -> bool:
        """Send a rendered line to a specific session."""
        return await self.registry.deliver_to(session_id, encode_line(line))

    async def handle_join(self, session: SessionInfo, addr=None):
        """Greet a newly registered session and announce it to the others."""
        await self.send_to(session.id, create_welcome_lines(session.id, session.display_name))
        await self.broadcast_except(create_join_line(session.id, session.display_name), session.id)
        self.audit.log_connect(session.id, session.display_name, addr)

    async def handle_chat(self, session_id: int, name: str, text: str):
        """Broadcast a public message to everyone but its sender."""
        await self.broadcast_except(create_chat_line(session_id, name, text), session_id)
        self.audit.log_chat(session_id, name, text)

    async def handle_rename(self, session_id: int, argument: str) -> Optional[str]:
        """
        Process /name.

        Returns:
            The stored name, or None when the argument was empty
        """
        if not argument:
            await self.send_to(session_id, Replies.NAME_USAGE)
            return None

        try:
            name = await self.registry.rename(session_id, argument)
        except SessionNotFound:
            logger.warning(f"Rename for vanished id={session_id}")
            return None

        await self.broadcast_except(create_rename_line(session_id, name))
        self.audit.log_rename(session_id, name)
        return name

    async def handle_list(self, session_id: int):
        """Send the framed listing of live sessions to the requester only."""
        sessions = await self.registry.snapshot()
        listing = create_list_lines((s.id, s.display_name) for s in sessions)
        await self.send_to(session_id, listing)

    async def handle_private(self, session_id: int, name: str, argument: str):
        """Route a /msg to its target, acknowledging or reporting to the sender."""
        target_id, text = parse_private_message(argument)

        target = None
        if target_id > 0:
            try:
                target = await self.registry.lookup_by_id(target_id)
            except SessionNotFound:
                target = None

        if target is None:
            await self.send_to(session_id, Replies.USER_NOT_FOUND)
            self.audit.log_private_failed(session_id, target_id)
            return

        await self.send_to(target.id, create_private_line(session_id, name, text))
        await self.send_to(session_id, Replies.PM_SENT)
        self.audit.log_private(session_id, target.id, text)

    async def handle_unknown(self, session_id: int):
        await self.send_to(session_id, Replies.UNKNOWN_COMMAND)

    async def disconnect_client(self, session_id: int, name: str,
                                writer: Optional[asyncio.StreamWriter] = None):
        """Announce a departure, then remove the session and release its writer."""
        await self.broadcast_except(create_leave_line(session_id, name), session_id)
        self.audit.log_disconnect(session_id, name)
        await self.registry.unregister(session_id)

        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Close of id={session_id} reported: {e}")
