"""
Server configuration module.

This module handles server-side configuration settings.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, ACCEPT_BACKLOG, MAX_SESSIONS, AUDIT_LOG_FILE,
    ENV_HOST, ENV_PORT, ENV_BACKLOG, ENV_MAX_SESSIONS, ENV_LOG_FILE
)


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 backlog: int = ACCEPT_BACKLOG, max_sessions: int = MAX_SESSIONS,
                 log_file: str = AUDIT_LOG_FILE):
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be positive, got {max_sessions}")
        self.host = host
        self.port = port
        self.backlog = backlog

        # Registry settings
        self.max_sessions = max_sessions

        # Audit log
        self.log_file = log_file

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'ServerConfig':
        """
        Build a configuration from the process environment.

        A .env file is loaded first; variables already set in the
        environment take precedence over it.
        """
        load_dotenv(env_file)
        return cls(
            host=os.getenv(ENV_HOST, DEFAULT_SERVER_HOST),
            port=int(os.getenv(ENV_PORT, str(DEFAULT_PORT))),
            backlog=int(os.getenv(ENV_BACKLOG, str(ACCEPT_BACKLOG))),
            max_sessions=int(os.getenv(ENV_MAX_SESSIONS, str(MAX_SESSIONS))),
            log_file=os.getenv(ENV_LOG_FILE, AUDIT_LOG_FILE),
        )
