#!/usr/bin/env python3
"""
Chat Relay Server - Main Entry Point

This is the main entry point for the server application.
It accepts connections, registers each one and runs a command interpreter
task per session until the session or the whole server closes.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional, Set

from common.constants import BUF_SIZE, Replies
from common.protocol_definitions import encode_line
from server.chat.chat_server import ChatServer
from server.chat.command_interpreter import CommandInterpreter
from server.registry.client_registry import ClientRegistry, RegistryClosed, RegistryFull
from server.utils.config import ServerConfig
from server.utils.logger import ServerLogger, logger


class RelayServer:
    """Main server class that ties the registry, chat server and listener together."""

    def __init__(self, config: Optional[ServerConfig] = None, audit: Optional[ServerLogger] = None):
        self.config = config or ServerConfig()
        self.audit = audit or logger
        self.registry = ClientRegistry(self.config.max_sessions)
        self.chat_server = ChatServer(self.registry, self.audit)
        self.server: Optional[asyncio.AbstractServer] = None
        self._tasks: Set[asyncio.Task] = set()
        self._shutdown_started = False
        self._shutdown_task: Optional[asyncio.Task] = None
        self._stopped = asyncio.Event()

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, useful when configured with port 0."""
        if self.server is None or not self.server.sockets:
            return None
        return self.server.sockets[0].getsockname()[1]

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle individual client connection."""
        addr = writer.get_extra_info('peername')

        try:
            session = await self.registry.register(writer)
        except RegistryFull:
            self.audit.log_reject(addr, 'full')
            await self._refuse(writer, Replies.SERVER_FULL)
            return
        except RegistryClosed:
            self.audit.log_reject(addr, 'shutdown')
            await self._refuse(writer, Replies.SHUTDOWN)
            return

        task = asyncio.current_task()
        self._tasks.add(task)
        try:
            interpreter = CommandInterpreter(self.chat_server, session, reader, writer, addr)
            await interpreter.run()
        except asyncio.CancelledError:
            logger.debug(f"Session id={session.id} cancelled")
            raise
        except Exception:
            logger.exception(f"Unexpected error in session id={session.id}")
        finally:
            self._tasks.discard(task)

    async def _refuse(self, writer: asyncio.StreamWriter, reply: str):
        """Tell an unregistered connection why it is dropped and close it."""
        try:
            writer.write(encode_line(reply))
            await writer.drain()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Refusal not delivered: {e}")
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Close after refusal reported: {e}")

    async def start(self):
        """Open the audit log and start listening."""
        self.audit.open_audit(self.config.log_file)
        self.server = await asyncio.start_server(
            self.handle_client,
            self.config.host,
            self.config.port,
            backlog=self.config.backlog,
            limit=BUF_SIZE
        )

        addr = ', '.join(str(sock.getsockname()) for sock in self.server.sockets)
        logger.info(f"Chat server listening on {addr}")

    async def serve_forever(self):
        """Start the server and run until shutdown() completes."""
        await self.start()
        await self._stopped.wait()

    async def shutdown(self):
        """
        Stop the server. Safe to call more than once and concurrently with
        registrations; only the first call does any work.
        """
        if self._shutdown_started:
            return
        self._shutdown_started = True
        logger.info("Server shutting down...")

        if self.server is not None:
            self.server.close()

        closed = await self.registry.close_all(encode_line(Replies.SHUTDOWN))
        logger.info(f"Closed {closed} session(s)")

        current = asyncio.current_task()
        tasks = [task for task in self._tasks if task is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if self.server is not None:
            await self.server.wait_closed()

        self.audit.log_shutdown()
        self.audit.close_audit()
        self._stopped.set()

    def request_shutdown(self) -> asyncio.Task:
        """Schedule shutdown() from synchronous code such as a signal handler."""
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self.shutdown())
        return self._shutdown_task


def install_signal_handlers(server: RelayServer):
    """Route SIGINT/SIGTERM to server.request_shutdown() where the loop supports it."""
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, server.request_shutdown)
        except NotImplementedError:
            logger.debug(f"Loop signal handlers unsupported; relying on KeyboardInterrupt for {signum}")


async def run_server(config: ServerConfig):
    server = RelayServer(config)
    install_signal_handlers(server)
    try:
        await server.serve_forever()
    finally:
        await server.shutdown()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Chat Relay Server')
    parser.add_argument('--host', type=str, default=None,
                        help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=None,
                        help='TCP port to listen on (default: 9090)')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Audit log path (default: server.log)')
    parser.add_argument('--max-sessions', type=int, default=None,
                        help='Maximum concurrent sessions (default: 128)')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')
    return parser.parse_args(argv)


def build_config(args) -> ServerConfig:
    """Environment values first, command line overrides second."""
    config = ServerConfig.from_env()
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.log_file is not None:
        config.log_file = args.log_file
    if args.max_sessions is not None:
        if args.max_sessions < 1:
            raise ValueError(f"max_sessions must be positive, got {args.max_sessions}")
        config.max_sessions = args.max_sessions
    return config


def main(argv=None):
    args = parse_args(argv)
    if args.verbose:
        logger.set_level(logging.DEBUG)

    config = build_config(args)
    logger.info(f"Server binding to {config.host}:{config.port}")

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Server interrupted")
    except OSError as e:
        logger.error(f"Could not start server on {config.host}:{config.port}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
