from flask import Blueprint

from models import storage

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Liveness plus a database round trip
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
      503:
        description: Database unreachable
    """
    database = "ok" if storage.ping() else "unavailable"
    status = 200 if database == "ok" else 503
    return {"status": "ok" if status == 200 else "degraded", "database": database, "version": "1.0.0"}, status
