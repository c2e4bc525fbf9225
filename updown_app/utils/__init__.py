"""
Utility functions module.

Common utility functions for window arithmetic and time parsing.

Time Semantics:
- Windows are anchored to the epoch, never to process start
- A market's own end time is authoritative for time remaining
- The epoch-aligned window end is the fallback when no market is selected
- All timestamps inside the core are integer epoch milliseconds
"""
