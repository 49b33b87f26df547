import logging

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

bp = Blueprint("health", __name__)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@bp.get("/health")
def health():
    """
    Health check (includes a round trip to the credential database)
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            database:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
      503:
        description: Database unreachable
    """
    session = current_app.extensions["storage"].get_session()
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database")
        return {"status": "degraded", "database": "unreachable", "version": VERSION}, 503
    return {"status": "ok", "database": "ok", "version": VERSION}, 200
