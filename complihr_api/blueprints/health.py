# complihr_api/blueprints/health.py
from flask import Blueprint
from sqlalchemy import text

from complihr_api.common.http import ok, fail
from complihr_api.extensions import db

bp = Blueprint("health", __name__, url_prefix="/api")


@bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        db.session.rollback()
        return fail("database unreachable", 503, code="STORAGE_UNAVAILABLE", detail=str(e))
    return ok({"status": "ok"})
