"""Service layer — the command pipeline and the CRUD service base.

Services may import from the domain layer and the telemetry/plugin
observers. They must never import from config.
"""
