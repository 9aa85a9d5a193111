"""
Server package for the chat relay.

This package contains all server-side functionality including:
- Session registry
- Command interpretation
- Broadcast and private message routing
- Configuration and utilities
"""
