"""In-memory persistence adapters."""
from .in_memory import InMemoryDataStore, InMemoryUnitOfWork

__all__ = ["InMemoryDataStore", "InMemoryUnitOfWork"]
