"""
Command interpreter module.

One CommandInterpreter runs per session for the session's whole lifetime.
It reads newline-terminated lines, tokenizes them into commands and hands
each one to the ChatServer.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.constants import Commands
from common.protocol_definitions import decode_line
from server.chat.chat_server import ChatServer
from server.registry.client_registry import SessionInfo
from server.utils.logger import logger


class CommandType(Enum):
    MESSAGE = 'message'
    QUIT = 'quit'
    NAME = 'name'
    LIST = 'list'
    MSG = 'msg'
    UNKNOWN = 'unknown'


class SessionState(Enum):
    ACTIVE = 'active'
    CLOSED = 'closed'


@dataclass(frozen=True)
class Command:
    type: CommandType
    argument: str = ''


_COMMAND_WORDS = {
    Commands.QUIT: CommandType.QUIT,
    Commands.NAME: CommandType.NAME,
    Commands.LIST: CommandType.LIST,
    Commands.MSG: CommandType.MSG,
}


def parse_command(line: str) -> Command:
    """
    Tokenize a non-empty line.

    Lines without the command prefix are public messages. Otherwise the
    line splits at its first space into command word and argument. /msg
    is only a command when followed by a space.
    """
    if not line.startswith(Commands.PREFIX):
        return Command(CommandType.MESSAGE, line)
    word, sep, argument = line.partition(' ')
    if word == Commands.MSG and not sep:
        return Command(CommandType.UNKNOWN)
    return Command(_COMMAND_WORDS.get(word, CommandType.UNKNOWN), argument)


class CommandInterpreter:
    """Per-session read/dispatch loop."""

    def __init__(self, chat_server: ChatServer, session: SessionInfo,
                 reader: asyncio.StreamReader, writer: asyncio.StreamWriter, addr=None):
        self.chat_server = chat_server
        self.session_id = session.id
        self.name = session.display_name
        self.reader = reader
        self.writer = writer
        self.addr = addr
        self.state = SessionState.ACTIVE

    async def run(self):
        """Serve the session until it closes, then run the disconnect sequence."""
        try:
            await self.chat_server.handle_join(
                SessionInfo(self.session_id, self.name), self.addr
            )
            while self.state is SessionState.ACTIVE:
                line = await self.read_line()
                if line is None:
                    break
                if not line:
                    continue
                await self.dispatch(parse_command(line))
        finally:
            self.state = SessionState.CLOSED
            await self.chat_server.disconnect_client(self.session_id, self.name, self.writer)

    async def read_line(self) -> Optional[str]:
        """
        Read one line with its terminator stripped.

        Returns:
            None on end-of-stream or any read failure
        """
        try:
            data = await self.reader.readline()
        except (ConnectionError, OSError) as e:
            logger.info(f"Read error for id={self.session_id}: {e}")
            return None
        except ValueError as e:
            # StreamReader raises ValueError when a line exceeds its limit
            logger.warning(f"Line too long from id={self.session_id}: {e}")
            return None

        if not data:
            return None
        return decode_line(data)

    async def dispatch(self, command: Command):
        """Execute one command on behalf of this session."""
        if command.type is CommandType.MESSAGE:
            await self.chat_server.handle_chat(self.session_id, self.name, command.argument)
        elif command.type is CommandType.QUIT:
            self.state = SessionState.CLOSED
        elif command.type is CommandType.NAME:
            name = await self.chat_server.handle_rename(self.session_id, command.argument)
            if name is not None:
                self.name = name
        elif command.type is CommandType.LIST:
            await self.chat_server.handle_list(self.session_id)
        elif command.type is CommandType.MSG:
            await self.chat_server.handle_private(self.session_id, self.name, command.argument)
        else:
            await self.chat_server.handle_unknown(self.session_id)
