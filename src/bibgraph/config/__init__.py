"""Configuration layer — settings models, TOML discovery, logging setup.

May import from domain. Must never import from algorithms or commands.
"""
