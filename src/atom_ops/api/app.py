"""Flask application factory for the inspection API."""

from flask import Flask, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from atom_ops.api.health import health_bp
from atom_ops.health.registry import HealthCheckRegistry
from atom_ops.tracker import ErrorTracker


def create_app(
    registry: HealthCheckRegistry,
    tracker: ErrorTracker | None = None,
    service_name: str = "atom-ops",
    *,
    enable_metrics: bool = True,
) -> Flask:
    """Create the inspection application.

    Args:
        registry: Health registry whose latest report is served
        tracker: Error tracker whose stats are served (optional)
        service_name: Flask application name, echoed in responses
        enable_metrics: Whether to expose /metrics

    Returns:
        Configured Flask application
    """
    app = Flask(service_name)
    app.extensions["atom_health_registry"] = registry
    app.extensions["atom_error_tracker"] = tracker

    app.register_blueprint(health_bp)

    if enable_metrics:

        @app.route("/metrics")
        def metrics() -> Response:
            return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)

    return app


def run_app(app: Flask, host: str = "0.0.0.0", port: int = 8080, debug: bool = False) -> None:
    """Run with the development server.

    The app only reads in-memory state, so it can run in a thread beside
    the bot's event loop.
    """
    app.run(host=host, port=port, debug=debug)
