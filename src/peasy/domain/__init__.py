"""Domain layer — validation results, business rules, and failure signals.

This layer depends only on stdlib and pydantic.
It must never import from services, plugins, or config.
"""
