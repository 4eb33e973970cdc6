"""Domain layer — enums, payload models, and protocols.

This layer depends only on stdlib and pydantic.
It must never import from graph, algorithms, config, or commands.
"""
