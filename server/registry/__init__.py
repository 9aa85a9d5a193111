"""
Registry module for server-side session tracking.

Handles:
- Session slot allocation and id assignment
- Display names
- Serialized delivery to live sessions
"""
