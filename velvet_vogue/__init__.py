"""Velvet Vogue storefront: catalog, cart, checkout and admin API."""

__version__ = "0.1.0"
