#!/usr/bin/env python3
"""
Chat Relay Client - Main Entry Point

Interactive terminal client: lines typed on stdin go to the server, lines
from the server are printed as they arrive.
"""

import argparse
import asyncio
import signal
import sys
import threading
from typing import Optional

from client.chat.chat_client import ChatClient, is_quit
from client.ui.terminal_view import TerminalView
from client.utils.config import ClientConfig
from client.utils.logger import logger
from common.constants import DEFAULT_PORT, Replies


class TerminalClient:
    """Main client class that joins stdin, the connection and the terminal view."""

    def __init__(self, config: ClientConfig, view: Optional[TerminalView] = None):
        self.config = config
        self.view = view or TerminalView(color=config.color)
        self.chat_client = ChatClient()
        self.chat_client.set_line_handler(self.view.show)
        self.running = False
        self._input: Optional[asyncio.Queue] = None
        self._done: Optional[asyncio.Event] = None
        self._quit_task: Optional[asyncio.Task] = None

    async def connect(self) -> bool:
        try:
            await self.chat_client.connect(self.config.host, self.config.port)
        except OSError as e:
            logger.log_connection(self.config.host, self.config.port, False)
            self.view.notice(f"Could not connect to {self.config.host}:{self.config.port}: {e}")
            return False

        self.running = True
        self.view.notice(f"Connected to {self.config.host}:{self.config.port}")
        self.view.notice(f"Type messages. {Replies.COMMAND_SUMMARY}")
        return True

    def _read_stdin(self, loop: asyncio.AbstractEventLoop):
        """Runs in a daemon thread so a blocked read never holds up exit."""
        try:
            for line in sys.stdin:
                loop.call_soon_threadsafe(self._input.put_nowait, line)
            loop.call_soon_threadsafe(self._input.put_nowait, None)
        except RuntimeError:
            # loop already closed; the client is exiting
            return

    async def send_input(self):
        """Forward typed lines until stdin ends or /quit is sent."""
        while self.running:
            line = await self._input.get()
            if line is None:
                break
            line = line.rstrip('\r\n')
            if not line:
                continue
            if not await self.chat_client.send_line(line):
                break
            if is_quit(line):
                break
        self._done.set()

    async def receive(self):
        await self.chat_client.listen()
        if self.running:
            self.view.notice("\n[Disconnected from server]")
        self._done.set()

    async def quit(self):
        """Send /quit and stop, as on SIGINT."""
        if not self.running:
            return
        await self.chat_client.send_quit()
        self.running = False
        self.view.notice("\n[Client exiting]")
        self._done.set()

    def request_quit(self) -> asyncio.Task:
        """Schedule quit() from the SIGINT handler, keeping the task referenced."""
        if self._quit_task is None:
            self._quit_task = asyncio.ensure_future(self.quit())
        return self._quit_task

    async def run(self) -> int:
        """Main client loop. Returns the process exit status."""
        if not await self.connect():
            return 1

        loop = asyncio.get_running_loop()
        self._input = asyncio.Queue()
        self._done = asyncio.Event()
        self._install_signal_handler(loop)

        threading.Thread(target=self._read_stdin, args=(loop,), daemon=True).start()
        tasks = [asyncio.create_task(self.send_input()), asyncio.create_task(self.receive())]

        try:
            await self._done.wait()
        finally:
            self.running = False
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self.chat_client.close()
        return 0

    def _install_signal_handler(self, loop: asyncio.AbstractEventLoop):
        try:
            loop.add_signal_handler(signal.SIGINT, self.request_quit)
        except NotImplementedError:
            logger.debug("Loop signal handlers unsupported; Ctrl+C ends the client directly")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Chat Relay Client')
    parser.add_argument('server', type=str,
                        help='Server address')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help='Server TCP port (default: 9090)')
    parser.add_argument('--no-color', action='store_true',
                        help='Disable colored output')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    config = ClientConfig(args.server, args.port, color=not args.no_color)
    client = TerminalClient(config)

    try:
        status = asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\n[Client exiting]")
        status = 0
    sys.exit(status)


if __name__ == "__main__":
    main()
