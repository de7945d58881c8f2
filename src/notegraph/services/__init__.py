"""Service layer — application operations returning ServiceResult.

Services may import from the domain and infrastructure layers.
They must never import from commands or output.
"""
