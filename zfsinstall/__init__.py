"""ZFS-on-root installer.

Core design goals:
- Validate everything before the first destructive command
- Fail fast, never roll back (the operator inspects and recovers)
- GPT labels, not device names, in the pool configuration
- Centralized logging and a run journal
"""

__all__ = []
