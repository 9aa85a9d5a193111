#!/usr/bin/env python3
"""
Chat Relay Server - Main Entry Point

Usage:
    python main_server.py

Optional arguments:
    --host HOST           Bind address (default: 0.0.0.0)
    --port PORT           TCP port (default: 9090)
    --log-file PATH       Audit log path (default: server.log)
    --max-sessions N      Session capacity (default: 128)
    --verbose             Debug logging

Environment variables (also read from .env):
    CHAT_HOST, CHAT_PORT, CHAT_BACKLOG, CHAT_MAX_SESSIONS, CHAT_LOG_FILE
"""

if __name__ == "__main__":
    from server.main_server import main

    main()
