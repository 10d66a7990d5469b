from datetime import datetime, timezone

from flask import Blueprint, current_app

from library_api.responses import error_response, success_response
from models import storage

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
        schema:
          type: object
          properties:
            success: { type: boolean, example: true }
            message: { type: string, example: API is running }
            timestamp: { type: string, format: date-time }
            version: { type: string, example: 1.0.0 }
            environment: { type: string, example: development }
      503:
        description: Database unreachable
    """
    if not storage.ping():
        return error_response("Database unavailable", 503)
    return success_response(
        "API is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=current_app.config["VERSION"],
        environment=current_app.config["APP_ENV"],
    )
