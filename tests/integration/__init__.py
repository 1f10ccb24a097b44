"""
Integration tests.

These exercise several cache components together:
- Two cache managers sharing one distributed tier
- L2 to L1 promotion across managers
- Invalidation reaching every manager's distributed view

They run against the in-memory Redis stand-in by default and against a real
Redis when USE_REAL_REDIS=1 (REDIS_URL, default redis://localhost:6379/15).
"""
