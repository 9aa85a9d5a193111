"""
Server logging module.

This module handles server-side logging and the append-only audit log.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from common.constants import AUDIT_TIME_FORMAT


class ServerLogger:
    """Server logging class."""

    def __init__(self, log_level: int = logging.INFO):
        # Set up main logger
        self.logger = logging.getLogger('chat_relay_server')
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Create console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)

        # Add handler to logger
        self.logger.addHandler(console_handler)

        self.audit_path: Optional[Path] = None
        self._audit_file: Optional[TextIO] = None

    def set_level(self, log_level: int):
        """Change the level of the logger and its handlers."""
        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            handler.setLevel(log_level)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def exception(self, message: str):
        """Log error message with the active traceback."""
        self.logger.exception(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def open_audit(self, path: str):
        """Open the audit log for appending. Reopening an open log is a no-op."""
        if self._audit_file is not None:
            return
        self.audit_path = Path(path)
        self.audit_path.parent.mkdir(parents=True, exist_ok=True)
        self._audit_file = open(self.audit_path, 'a', encoding='utf-8')
        self.debug(f"Audit log opened at {self.audit_path}")

    def close_audit(self) -> bool:
        """Flush and close the audit log. Returns False if it was not open."""
        if self._audit_file is None:
            return False
        audit_file, self._audit_file = self._audit_file, None
        audit_file.flush()
        audit_file.close()
        return True

    @property
    def audit_open(self) -> bool:
        return self._audit_file is not None

    def log_connect(self, session_id: int, name: str, addr=None):
        """Log a registered session."""
        self.info(f"New connection from {addr}, assigned id={session_id}")
        self._write_audit(f"CONNECT id={session_id} name={name}")

    def log_reject(self, addr, reason: str):
        """Log a connection turned away before registration."""
        self.warning(f"Rejected connection from {addr}: {reason}")
        self._write_audit(f"REJECT addr={addr} reason={reason}")

    def log_rename(self, session_id: int, name: str):
        self.info(f"id={session_id} renamed to '{name}'")
        self._write_audit(f"RENAME id={session_id} name={name}")

    def log_chat(self, session_id: int, name: str, text: str):
        self.debug(f"Chat from {name} (id={session_id}): {text}")
        self._write_audit(f"MSG id={session_id} name={name} text={text}")

    def log_private(self, from_id: int, to_id: int, text: str):
        self.debug(f"PM from id={from_id} to id={to_id}: {text}")
        self._write_audit(f"PM from={from_id} to={to_id} text={text}")

    def log_private_failed(self, from_id: int, to_id: int):
        self.debug(f"PM from id={from_id} to missing id={to_id}")
        self._write_audit(f"PM_FAILED from={from_id} to={to_id}")

    def log_disconnect(self, session_id: int, name: str):
        """Log client disconnect."""
        self.info(f"User {name} (id={session_id}) disconnected")
        self._write_audit(f"DISCONNECT id={session_id} name={name}")

    def log_shutdown(self):
        self.info("Server shut down")
        self._write_audit("SERVER SHUTDOWN")

    def _write_audit(self, content: str):
        """Append one timestamped record to the audit log."""
        if self._audit_file is None:
            self.debug(f"Audit log closed, dropped record: {content}")
            return
        timestamp = datetime.now().strftime(AUDIT_TIME_FORMAT)
        try:
            self._audit_file.write(f"{timestamp}  {content}\n")
            self._audit_file.flush()
        except OSError as e:
            self.error(f"Failed to write to audit log {self.audit_path}: {e}")


# Global logger instance
logger = ServerLogger()
