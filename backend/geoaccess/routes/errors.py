# Overview: Shared translation of service exceptions into JSON error responses.

from flask import jsonify

from ..errors import GeoAccessError, InvalidStateError, NotFoundError, ValidationError


def error_response(exc: GeoAccessError):
    """
    400 ValidationError, 404 NotFoundError, 409 InvalidStateError.

    409 bodies carry current_status so the UI can resynchronize.
    """
    if isinstance(exc, InvalidStateError):
        return jsonify({"error": str(exc), "current_status": exc.current_status}), 409
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    return jsonify({"error": str(exc)}), 400


def internal_error():
    return jsonify({"error": "Internal server error"}), 500
