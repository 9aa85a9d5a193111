#!/usr/bin/env python3
"""
Chat Relay Client - Main Entry Point

Usage:
    python main_client.py <server_address> [--port PORT] [--no-color]

Type messages at the prompt. Commands: /name <new>, /list, /msg <id> <text>, /quit
Ctrl+C sends /quit and exits.
"""

if __name__ == "__main__":
    from client.main_client import main

    main()
