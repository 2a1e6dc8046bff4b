from flask import jsonify

from ..errors import ServiceError


def error_response(e: ServiceError):
    """Structured JSON body + status for a service error."""
    return jsonify(e.to_dict()), e.status_code
