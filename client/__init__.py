"""
Client package for the chat relay.

This package contains the interactive terminal client:
- Line protocol connection
- Terminal output
- Configuration and utilities
"""
