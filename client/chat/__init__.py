"""
Chat module for client-side messaging functionality.

Handles:
- Sending typed lines
- Receiving server lines
"""
