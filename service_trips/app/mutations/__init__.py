"""
Write operations for the trips data layer.

Each mutation calls the gateway first and touches the cache only after the
store has confirmed the write.
"""

from .coordinator import TripMutations

__all__ = ["TripMutations"]
