from flask import Blueprint
from sqlalchemy import text

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
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
            database:
              type: string
              example: ok
    """
    storage.get_session().execute(text("SELECT 1"))
    return {"status": "ok", "version": "1.0.0", "database": "ok"}, 200
