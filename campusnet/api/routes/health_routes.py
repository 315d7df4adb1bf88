# campusnet/api/routes/health_routes.py
from flask import Blueprint, jsonify
from sqlalchemy import text

from campusnet.core.container import current_container
from campusnet.infrastructure.database.session import db_session

bp_health = Blueprint("health", __name__)


@bp_health.get("")
def health():
    return jsonify({"ok": True, "env": current_container().settings.environment}), 200


@bp_health.get("/db")
def health_db():
    with db_session() as session:
        session.execute(text("select 1"))
    return jsonify({"ok": True, "db": "ok"}), 200


@bp_health.get("/revocation")
def health_revocation():
    store = current_container().revocation_store
    return jsonify({"ok": True, "backend": store.backend_name}), 200
