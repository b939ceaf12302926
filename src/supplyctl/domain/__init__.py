"""Domain layer — lifecycle, item model, guards, and settlement rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
