"""Application layer - use cases coordinating domain and collaborators."""
