from flask import Blueprint, jsonify

from app.sensei.openapi import build_openapi_document

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No store access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/openapi.json")
def openapi_json():
    return jsonify(build_openapi_document())
