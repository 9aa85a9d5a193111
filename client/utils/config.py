"""
Client configuration module.

This module handles client-side configuration settings.
"""

from common.constants import DEFAULT_PORT


class ClientConfig:
    """Client configuration class."""

    def __init__(self, host: str, port: int = DEFAULT_PORT, color: bool = True):
        self.host = host
        self.port = port

        # Display settings
        self.color = color
