"""
Chat client module.

This module handles the client side of the line protocol: sending typed
lines and handing every received line to a display callback.
"""

import asyncio
from typing import Callable, Optional

from common.constants import Commands
from common.protocol_definitions import decode_line, encode_line
from client.utils.logger import logger


class ChatClient:
    """Client-side chat connection."""

    def __init__(self, reader: Optional[asyncio.StreamReader] = None,
                 writer: Optional[asyncio.StreamWriter] = None):
        self.reader = reader
        self.writer = writer
        self.line_handler: Optional[Callable[[str], None]] = None

    async def connect(self, host: str, port: int):
        """Open the connection. Raises OSError on failure."""
        self.reader, self.writer = await asyncio.open_connection(host, port)
        logger.log_connection(host, port, True)

    def set_line_handler(self, handler: Callable[[str], None]):
        """Set the handler called with each line received from the server."""
        self.line_handler = handler

    async def send_line(self, line: str) -> bool:
        """Send one line to the server."""
        if not self.writer:
            logger.error("Not connected to server")
            return False

        try:
            self.writer.write(encode_line(line))
            await self.writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            logger.log_error("send", e)
            return False

    async def send_quit(self) -> bool:
        return await self.send_line(Commands.QUIT)

    async def listen(self):
        """Deliver server lines to the handler until the server closes the stream."""
        while True:
            try:
                data = await self.reader.readline()
            except (ConnectionError, OSError) as e:
                logger.log_error("receive", e)
                break
            if not data:
                break
            if self.line_handler:
                self.line_handler(decode_line(data))

    async def close(self):
        if not self.writer:
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Close reported: {e}")


def is_quit(line: str) -> bool:
    """True for any typed line the server will treat as /quit."""
    return line.partition(' ')[0] == Commands.QUIT
