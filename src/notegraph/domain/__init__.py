"""Domain layer — graph aggregate, value objects, and stateless domain services.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, plugins, commands, or config.
"""
