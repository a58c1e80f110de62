"""
Catalog and customer lookups backed by the order database.
"""

from orderdesk.core.catalog.products import ProductCatalog
from orderdesk.core.catalog.history import PurchaseHistory
from orderdesk.core.catalog.customers import CustomerDirectory

__all__ = [
    "ProductCatalog",
    "PurchaseHistory",
    "CustomerDirectory",
]
