"""Health and error-stats blueprint."""

from typing import Any

from flask import Blueprint, current_app, jsonify

from atom_ops.health.registry import HealthStatus

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health_check() -> tuple[Any, int]:
    """Latest health report. 503 when critical or before the first cycle."""
    registry = current_app.extensions["atom_health_registry"]
    report = registry.last_report

    if report is None:
        body = {"overall": HealthStatus.UNKNOWN.value, "service": current_app.name, "checks": {}}
        return jsonify(body), 503

    body = report.to_dict()
    body["service"] = current_app.name
    return jsonify(body), 503 if report.overall is HealthStatus.CRITICAL else 200


@health_bp.route("/health/errors")
def error_stats() -> tuple[Any, int]:
    """Error tracker statistics."""
    tracker = current_app.extensions.get("atom_error_tracker")
    if tracker is None:
        return jsonify({"error": "error tracking not enabled"}), 404
    return jsonify(tracker.stats().to_dict()), 200
