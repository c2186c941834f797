"""Liveness probe covering the database and the refresh-session store."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sessionauth.api.deps import json_response, timing
from sessionauth.core.extensions import db, ping_redis

bp = Blueprint("health", __name__)


def _database_ok() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        return False
    return True


@bp.get("/health")
@timing
def healthcheck():
    """
    Report ``ok``/``fail`` per dependency.

    The response is ``503`` when any dependency is down so load balancers can
    pull the instance.
    """

    backend = str(current_app.config.get("SESSION_STORE_BACKEND", "sql")).lower()
    db_ok = _database_ok()
    store_ok = db_ok if backend == "sql" else ping_redis()
    healthy = db_ok and store_ok
    payload = {
        "status": "ok" if healthy else "fail",
        "db": "ok" if db_ok else "fail",
        "sessionStore": backend,
        "sessionStoreStatus": "ok" if store_ok else "fail",
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload, status=200 if healthy else 503)
