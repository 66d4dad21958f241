"""Storefront storage adapters."""

from .catalog_repository import CatalogRepository, next_product_id, product_seq

__all__ = [
    "CatalogRepository",
    "next_product_id",
    "product_seq",
]
