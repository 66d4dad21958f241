"""Velvet Vogue storefront Flask application."""

from __future__ import annotations

from typing import Optional

from flask import Flask

from .common.db.session import make_engine, make_session_factory
from .common.db.sql_repository import SqlStoreRepository
from .common.services.cart_service import CartService
from .common.services.catalog_service import CatalogService
from .common.services.order_service import OrderService
from .common.services.payment_service import SimulatedPaymentGateway
from .config import StoreConfig
from .routes import admin, api
from .services import CatalogRepository


def create_app(
    config: Optional[StoreConfig] = None,
    *,
    gateway: Optional[SimulatedPaymentGateway] = None,
) -> Flask:
    config = config or StoreConfig.load()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["VELVET_VOGUE_CONFIG"] = config

    pricing = config.pricing_config()
    engine = make_engine(config.database_url)
    catalog_repo = CatalogRepository(config.catalog_file)
    repository = SqlStoreRepository(make_session_factory(engine), catalog_repo)
    gateway = gateway or SimulatedPaymentGateway(
        success_rate=config.payment_success_rate,
        delay_seconds=config.payment_delay_seconds,
    )

    components = {
        "catalog_repo": catalog_repo,
        "repository": repository,
        "catalog_service": CatalogService(catalog_repo),
        "cart_service": CartService(repository, catalog_repo, pricing),
        "order_service": OrderService(repository, gateway, pricing),
        # token -> issue time for tokens handed out by /api/admin/login
        "admin_tokens": {},
    }
    app.extensions["velvet_vogue_components"] = components

    app.register_blueprint(api.api_bp)
    app.register_blueprint(admin.admin_bp)

    return app


def main() -> None:
    app = create_app()
    print("[VelvetVogue] storefront API on http://localhost:3000/api/products")
    app.run(host="0.0.0.0", port=3000, debug=False)


if __name__ == "__main__":
    main()
