from flask import jsonify


def success_response(message: str, data=None, status: int = 200, **context):
    """Uniform success envelope: ``{success, message, data, ...context}``."""
    payload = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    payload.update(context)
    return jsonify(payload), status


def error_response(message: str, status: int, **extra):
    payload = {"success": False, "message": message}
    payload.update(extra)
    return jsonify(payload), status
