"""Infrastructure layer — SQLite persistence, workspace wiring, NetworkX view.

Infrastructure may import from the domain layer (repositories map rows to
aggregates) but never from services, commands, or output.
"""
