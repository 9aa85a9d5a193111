"""
Chat module for server-side messaging functionality.

Handles:
- Per-session command interpretation
- Message broadcasting and private routing
- Join/leave announcements
- Audit logging of chat events
"""
