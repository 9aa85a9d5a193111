"""
Protocol definitions for the chat relay.

This module defines the line formats exchanged between client and server.
Every line on the wire is UTF-8 text terminated by a single newline.
"""

from typing import Iterable, Tuple

from common.constants import DEFAULT_NAME_PREFIX, NAME_MAX_BYTES, Replies


def encode_line(line: str) -> bytes:
    """Encode a rendered line for the wire, adding the terminator."""
    return (line + '\n').encode('utf-8')


def decode_line(data: bytes) -> str:
    """Decode an inbound line and strip every trailing CR/LF."""
    return data.decode('utf-8', errors='replace').rstrip('\r\n')


def default_name(session_id: int) -> str:
    """Display name given to a session on registration."""
    return f"{DEFAULT_NAME_PREFIX}{session_id}"


def truncate_name(name: str, max_bytes: int = NAME_MAX_BYTES) -> str:
    """
    Cut a display name down to max_bytes of UTF-8.

    Truncation is silent and never splits a multi-byte character.
    """
    encoded = name.encode('utf-8')
    if len(encoded) <= max_bytes:
        return name
    return encoded[:max_bytes].decode('utf-8', errors='ignore')


def create_welcome_lines(session_id: int, name: str) -> str:
    """Create the welcome banner sent to a newly registered session."""
    return f"Welcome {name} (ID:{session_id})\n{Replies.COMMAND_SUMMARY}"


def create_join_line(session_id: int, name: str) -> str:
    return f"{Replies.SERVER_TAG} {name} (ID:{session_id}) joined."


def create_leave_line(session_id: int, name: str) -> str:
    return f"{Replies.SERVER_TAG} {name} (ID:{session_id}) disconnected."


def create_rename_line(session_id: int, name: str) -> str:
    return f"{Replies.SERVER_TAG} ID {session_id} is now known as {name}"


def create_chat_line(session_id: int, name: str, text: str) -> str:
    """Create a public message line."""
    return f"{name} (ID:{session_id}): {text}"


def create_private_line(session_id: int, name: str, text: str) -> str:
    """Create a private message line as seen by the recipient."""
    return f"{Replies.PM_TAG} {name} (ID:{session_id})]: {text}"


def create_list_lines(entries: Iterable[Tuple[int, str]]) -> str:
    """
    Create the framed user listing.

    Args:
        entries: (id, name) pairs in table order

    Returns:
        Header, one line per entry and footer, joined by newlines
    """
    lines = [Replies.LIST_HEADER]
    lines.extend(f"ID:{session_id}  {name}" for session_id, name in entries)
    lines.append(Replies.LIST_FOOTER)
    return '\n'.join(lines)
