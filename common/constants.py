"""
Shared constants for the chat relay.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 9090
ACCEPT_BACKLOG = 16

# Buffer Sizes
BUF_SIZE = 4096  # max bytes per inbound line

# Sessions
MAX_SESSIONS = 128
NAME_MAX_BYTES = 31
DEFAULT_NAME_PREFIX = 'Client-'

# Logging
AUDIT_LOG_FILE = 'server.log'
AUDIT_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'

# Environment overrides for the server
ENV_HOST = 'CHAT_HOST'
ENV_PORT = 'CHAT_PORT'
ENV_BACKLOG = 'CHAT_BACKLOG'
ENV_MAX_SESSIONS = 'CHAT_MAX_SESSIONS'
ENV_LOG_FILE = 'CHAT_LOG_FILE'


# Client commands
class Commands:
    QUIT = '/quit'
    NAME = '/name'
    LIST = '/list'
    MSG = '/msg'

    PREFIX = '/'


# Fixed server replies
class Replies:
    COMMAND_SUMMARY = 'Commands: /name <new>, /list, /msg <id> <text>, /quit'
    USAGE_PREFIX = 'Usage:'
    NAME_USAGE = 'Usage: /name <newname>'
    USER_NOT_FOUND = 'User not found.'
    UNKNOWN_COMMAND = 'Unknown command.'
    PM_SENT = '[PM sent]'
    SERVER_FULL = 'Server full.'
    SHUTDOWN = '[Server] Shutting down.'
    LIST_HEADER = '=== Connected Users ==='
    LIST_FOOTER = '======================='
    SERVER_TAG = '[Server]'
    PM_TAG = '[PM from'
