"""
ControlGastos - Client Package

The client-side data layer for the ControlGastos personal and
shared finance tracker.

DESIGN PRINCIPLES:
1. The server is the source of truth - views never patch data locally
2. Every write is followed by a full re-read
3. Stale data beats empty data, but the user is always told
4. The session is explicit and owns everything in flight
5. The API and auth backends are swappable
"""

__version__ = "1.0.0"
__author__ = "ControlGastos Team"
