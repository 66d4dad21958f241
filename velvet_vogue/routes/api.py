"""Public storefront API: catalog, cart, checkout and contact."""

from __future__ import annotations

from typing import Any, Dict
from uuid import uuid4

from flask import Blueprint, current_app, jsonify, request, session

from ..common.domain import Customer
from ..common.errors import NotFound, PersistenceError, SimulatedPaymentFailure, ValidationError
from ..common.money import format_money, to_money
from ..common.services.catalog_service import product_dto
from ..common.services.logging import log_event
from ..common.utils.pagination import parse_int
from ..common.utils.validators import require_object, require_text


api_bp = Blueprint("velvet_vogue_api", __name__, url_prefix="/api")


def _components() -> Dict[str, Any]:
    return current_app.extensions["velvet_vogue_components"]


def _cart_key() -> str:
    key = session.get("cart_key")
    if not key:
        key = uuid4().hex
        session["cart_key"] = key
    return key


def _cart_response(status: int = 200):
    shipping = request.args.get("shipping", "standard")
    data = _components()["cart_service"].describe(_cart_key(), shipping)
    return jsonify(data), status


@api_bp.get("/products")
def list_products():
    catalog = _components()["catalog_service"]
    page = request.args.get("page")
    page_size = request.args.get("page_size")
    try:
        result = catalog.list_products(
            category=request.args.get("category") or None,
            query=request.args.get("q") or None,
            max_price=request.args.get("max_price") or None,
            stock=request.args.get("stock") or None,
            sort=request.args.get("sort", "default"),
            page=parse_int(page, 1) if page is not None else None,
            page_size=parse_int(page_size, 20) if page_size is not None else None,
        )
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except PersistenceError as exc:
        return jsonify({"error": "Failed to load products", "detail": str(exc)}), 500
    return jsonify(
        {
            "products": [product_dto(p) for p in result["products"]],
            "categories": [c.to_dict() for c in result["categories"]],
            "total": result["total"],
            "page": result["page"],
            "page_size": result["page_size"],
        }
    )


@api_bp.get("/products/<product_id>")
def get_product(product_id: str):
    try:
        product = _components()["catalog_service"].get_product(product_id)
    except NotFound:
        return jsonify({"error": "Product not found"}), 404
    except PersistenceError as exc:
        return jsonify({"error": "Failed to load product", "detail": str(exc)}), 500
    return jsonify(product_dto(product))


@api_bp.get("/cart")
def get_cart():
    try:
        return _cart_response()
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@api_bp.post("/cart/items")
def add_cart_item():
    payload = require_object(request.get_json(silent=True))
    product_id = str(payload.get("product_id") or payload.get("id") or "").strip()
    try:
        _components()["cart_service"].add_item(_cart_key(), product_id, payload.get("quantity", 1))
        return _cart_response(201)
    except NotFound:
        return jsonify({"error": "Product not found"}), 404
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@api_bp.patch("/cart/items/<product_id>")
def update_cart_item(product_id: str):
    payload = require_object(request.get_json(silent=True))
    cart_service = _components()["cart_service"]
    try:
        if "quantity" in payload:
            cart_service.set_quantity(_cart_key(), product_id, payload["quantity"])
        elif "delta" in payload:
            cart_service.update_quantity(_cart_key(), product_id, payload["delta"])
        else:
            return jsonify({"error": "Provide quantity or delta"}), 400
        return _cart_response()
    except NotFound:
        return jsonify({"error": "Item is not in the cart"}), 404
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@api_bp.delete("/cart/items/<product_id>")
def remove_cart_item(product_id: str):
    try:
        _components()["cart_service"].remove_item(_cart_key(), product_id)
    except NotFound:
        return jsonify({"error": "Item is not in the cart"}), 404
    return _cart_response()


@api_bp.delete("/cart")
def clear_cart():
    _components()["cart_service"].clear(_cart_key())
    return _cart_response()


@api_bp.post("/checkout")
def checkout():
    components = _components()
    try:
        payload = require_object(request.get_json(silent=True))
        customer = Customer.from_dict(payload.get("customer"))
        items = None
        if payload.get("items") is not None:
            if not isinstance(payload["items"], list):
                raise ValidationError("items must be a list", field="items")
            items = components["catalog_service"].price_items(payload["items"])
        order = components["order_service"].checkout(
            cart_key=_cart_key(),
            customer=customer,
            shipping_method=payload.get("shipping") or payload.get("shipping_method") or "standard",
            payment_method=str(payload.get("payment_method") or payload.get("paymentMethod") or "card"),
            notes=str(payload.get("notes") or ""),
            items=items,
        )
    except SimulatedPaymentFailure as exc:
        return jsonify({"success": False, "message": str(exc)}), 400
    except NotFound as exc:
        return jsonify({"success": False, "message": str(exc)}), 404
    except ValidationError as exc:
        return jsonify({"success": False, "message": str(exc), "field": exc.field}), 400
    except PersistenceError as exc:
        return jsonify({"success": False, "message": "Could not save your order", "detail": str(exc)}), 500

    client_total = payload.get("total")
    if client_total not in (None, ""):
        try:
            mismatch = to_money(client_total, "total") != order.total
        except ValidationError:
            mismatch = True
        if mismatch:
            log_event(
                "warning",
                "checkout.total_mismatch",
                order_id=order.id,
                client_total=str(client_total),
                total=format_money(order.total),
            )

    return jsonify(
        {
            "success": True,
            "orderId": order.id,
            "message": "Payment successful! Order has been placed.",
            "customer": order.customer.to_dict(),
            "order": order.to_dict(),
        }
    )


@api_bp.post("/contact")
def contact():
    try:
        payload = require_object(request.get_json(silent=True))
        name = require_text(payload, "name")
        email = require_text(payload, "email")
        message = require_text(payload, "message")
    except ValidationError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400
    log_event("info", "contact.received", name=name, email=email, length=len(message))
    return jsonify(
        {
            "success": True,
            "message": "Thank you for your message! We will get back to you soon.",
        }
    )


@api_bp.errorhandler(ValidationError)
def invalid_request(exc: ValidationError):
    return jsonify({"error": str(exc), "field": exc.field}), 400


@api_bp.errorhandler(PersistenceError)
def persistence_failed(exc: PersistenceError):
    return jsonify({"error": "Storage is unavailable", "detail": str(exc)}), 500
