"""notegraph — knowledge graph of short notes with similarity-driven linking."""

__version__ = "0.1.0"
