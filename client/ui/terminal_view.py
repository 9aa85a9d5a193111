"""
Terminal view for the chat client.

Prints server lines to stdout, colored by kind with colorama.
"""

import sys
from typing import TextIO

from colorama import just_fix_windows_console, Fore, Style

from common.constants import Replies

ERROR_REPLIES = (
    Replies.USER_NOT_FOUND,
    Replies.UNKNOWN_COMMAND,
    Replies.SERVER_FULL,
)


def classify_line(line: str) -> str:
    """Return the display kind of a server line."""
    if line.startswith(Replies.USAGE_PREFIX) or line in ERROR_REPLIES:
        return "error"
    if line.startswith(Replies.PM_TAG) or line == Replies.PM_SENT:
        return "dm"
    if line.startswith(Replies.SERVER_TAG):
        return "system"
    if line.startswith("Welcome ") or line.startswith("Commands:"):
        return "welcome"
    if line in (Replies.LIST_HEADER, Replies.LIST_FOOTER) or line.startswith("ID:"):
        return "list"
    return "chat"


def colored(kind: str, text: str) -> str:
    if kind == "error":
        return Fore.RED + text + Style.RESET_ALL
    if kind == "dm":
        return Fore.CYAN + text + Style.RESET_ALL
    if kind == "welcome":
        return Fore.GREEN + text + Style.RESET_ALL
    if kind == "system":
        return Fore.YELLOW + text + Style.RESET_ALL
    if kind == "list":
        return Style.BRIGHT + text + Style.RESET_ALL
    return text


class TerminalView:
    """Writes chat output to a terminal stream."""

    def __init__(self, color: bool = True, stream: TextIO = None):
        self.color = color
        self.stream = stream or sys.stdout
        if color:
            just_fix_windows_console()

    def render(self, line: str) -> str:
        if not self.color:
            return line
        return colored(classify_line(line), line)

    def show(self, line: str):
        """Print one server line."""
        print(self.render(line), file=self.stream, flush=True)

    def notice(self, text: str):
        """Print a client-side notice such as a connect or exit message."""
        print(text, file=self.stream, flush=True)
