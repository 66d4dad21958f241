"""Admin panel API (Velvet Vogue)."""

from __future__ import annotations

import time
from datetime import date

from flask import Blueprint, current_app, jsonify, request, session

from ..common.errors import InvalidTransition, NotFound, PersistenceError, ValidationError
from ..common.lifecycle import allowed_transitions
from ..common.services.catalog_service import product_dto
from ..common.services.logging import log_event
from ..common.utils.validators import ensure_positive_int, require_object


admin_bp = Blueprint("velvet_vogue_admin", __name__, url_prefix="/api/admin")

PUBLIC_ENDPOINTS = {
    "velvet_vogue_admin.login",
    "velvet_vogue_admin.logout",
}

ADMIN_TOKEN_LIMIT = 20
ADMIN_TOKEN_TTL_SECONDS = 8 * 60 * 60

_clock = time.time


def _components() -> dict:
    return current_app.extensions["velvet_vogue_components"]


def _config():
    return current_app.config["VELVET_VOGUE_CONFIG"]


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return header.strip()


def _is_authenticated() -> bool:
    if session.get("velvet_vogue_admin"):
        return True
    issued = _components()["admin_tokens"].get(_bearer_token())
    return issued is not None and _clock() - issued <= ADMIN_TOKEN_TTL_SECONDS


def _issue_token() -> str:
    """Record a new token, dropping expired ones and the oldest past the limit."""
    tokens = _components()["admin_tokens"]
    now = _clock()
    for stale in [t for t, issued in tokens.items() if now - issued > ADMIN_TOKEN_TTL_SECONDS]:
        del tokens[stale]
    token = f"admin-token-{int(now * 1000)}"
    tokens.pop(token, None)
    tokens[token] = now
    while len(tokens) > ADMIN_TOKEN_LIMIT:
        del tokens[next(iter(tokens))]
    return token


@admin_bp.before_request
def guard_private_routes():
    if request.endpoint and request.endpoint not in PUBLIC_ENDPOINTS:
        if not _is_authenticated():
            return jsonify({"error": "Unauthorized"}), 401
    return None


@admin_bp.post("/login")
def login():
    payload = require_object(request.get_json(silent=True)) or request.form
    username = str(payload.get("username", "")).strip()
    password = str(payload.get("password", "")).strip()
    cfg = _config()
    if username == cfg.admin_username and password == cfg.admin_password:
        token = _issue_token()
        session["velvet_vogue_admin"] = True
        log_event("info", "admin.login", username=username)
        return jsonify({"success": True, "token": token})
    log_event("warning", "admin.login_failed", username=username)
    return jsonify({"success": False, "message": "Invalid credentials"}), 401


@admin_bp.post("/logout")
def logout():
    session.pop("velvet_vogue_admin", None)
    _components()["admin_tokens"].pop(_bearer_token(), None)
    return jsonify({"success": True})


@admin_bp.get("/dashboard")
def dashboard():
    products = _components()["catalog_repo"].load_products()
    stats = _components()["order_service"].dashboard(product_count=len(products))
    return jsonify({"stats": stats})


@admin_bp.post("/products")
def create_product():
    try:
        payload = require_object(request.get_json(silent=True))
        if payload.get("stock") not in (None, ""):
            payload["stock"] = ensure_positive_int(payload["stock"], "stock")
        product = _components()["catalog_service"].add_product(payload)
    except ValidationError as exc:
        return jsonify({"success": False, "error": str(exc)}), 400
    except PersistenceError as exc:
        return jsonify({"success": False, "error": "Failed to add product", "detail": str(exc)}), 500
    return jsonify({"success": True, "product": product_dto(product)})


@admin_bp.delete("/products/<product_id>")
def delete_product(product_id: str):
    try:
        _components()["catalog_service"].delete_product(product_id)
    except NotFound:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"success": True})


@admin_bp.get("/orders")
def list_orders():
    on_date = None
    raw_date = request.args.get("date")
    if raw_date:
        try:
            on_date = date.fromisoformat(raw_date)
        except ValueError:
            return jsonify({"error": "date must be YYYY-MM-DD"}), 400
    try:
        orders = _components()["order_service"].list_orders(
            status=request.args.get("status") or None,
            query=request.args.get("q") or None,
            on_date=on_date,
        )
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"orders": [o.to_dict() for o in orders], "count": len(orders)})


@admin_bp.get("/orders/<order_id>")
def get_order(order_id: str):
    try:
        order = _components()["order_service"].get_order(order_id)
    except NotFound:
        return jsonify({"error": "Order not found"}), 404
    data = order.to_dict()
    data["allowed_transitions"] = sorted(s.value for s in allowed_transitions(order.status))
    return jsonify(data)


@admin_bp.post("/orders/<order_id>/advance")
def advance_order(order_id: str):
    try:
        order = _components()["order_service"].advance_order(order_id)
    except NotFound:
        return jsonify({"error": "Order not found"}), 404
    return jsonify(
        {
            "success": True,
            "order": order.to_dict(),
            "message": f"Order status updated to: {order.status.value}",
        }
    )


@admin_bp.put("/orders/<order_id>/status")
def set_order_status(order_id: str):
    try:
        payload = require_object(request.get_json(silent=True))
        order = _components()["order_service"].set_order_status(order_id, payload.get("status"))
    except NotFound:
        return jsonify({"error": "Order not found"}), 404
    except InvalidTransition as exc:
        return jsonify({"success": False, "error": str(exc)}), 409
    except ValidationError as exc:
        return jsonify({"success": False, "error": str(exc)}), 400
    return jsonify({"success": True, "order": order.to_dict()})


@admin_bp.get("/customers")
def list_customers():
    customers = _components()["order_service"].customers()
    return jsonify({"customers": customers, "count": len(customers)})


@admin_bp.errorhandler(ValidationError)
def invalid_request(exc: ValidationError):
    return jsonify({"success": False, "error": str(exc), "field": exc.field}), 400


@admin_bp.errorhandler(PersistenceError)
def persistence_failed(exc: PersistenceError):
    return jsonify({"error": "Storage is unavailable", "detail": str(exc)}), 500
