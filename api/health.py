import time
from datetime import datetime, timezone

from flask import Blueprint

bp = Blueprint("health", __name__)

_started = time.monotonic()


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            success:
              type: boolean
              example: true
            message:
              type: string
              example: Server is healthy
            timestamp:
              type: string
            uptime:
              type: number
    """
    return {
        "success": True,
        "message": "Server is healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _started, 3),
    }, 200
