# Overview: Shared JSON error responses for blueprints.

import sys

from flask import current_app, jsonify


def error(message: str, status: int):
    return jsonify({"error": message}), status


def server_error(message: str):
    """
    Log the active exception and return a generic 500.

    The exception text is included as `details` only in debug/testing.
    """
    current_app.logger.exception(message)
    body = {"error": message}
    exc = sys.exc_info()[1]
    if exc is not None and (current_app.debug or current_app.testing):
        body["details"] = str(exc)
    return jsonify(body), 500
