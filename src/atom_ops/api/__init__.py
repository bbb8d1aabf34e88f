"""Flask API for inspecting health and error state."""

from atom_ops.api.app import create_app, run_app
from atom_ops.api.health import health_bp

__all__ = ["create_app", "run_app", "health_bp"]
