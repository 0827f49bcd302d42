"""Infrastructure layer - adapters for persistence, notifications and realtime events."""
