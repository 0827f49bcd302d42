"""Realtime emitter adapters.

The Redis Streams emitter needs redis; import it from its module directly.
"""

__all__ = []
