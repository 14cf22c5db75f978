"""Catalog package.

Example tracked entities (users, categories, products, invoices) with their
persistence mappings and seed data.
"""

from .entities import (
    Category,
    Invoice,
    InvoiceLine,
    Product,
    ProductInCategory,
    User,
)
from .mappings import (
    CATALOG_MAPPINGS,
    CATEGORY_MAPPING,
    INVOICE_MAPPING,
    PRODUCT_IN_CATEGORY_MAPPING,
    PRODUCT_MAPPING,
    USER_MAPPING,
)
from .seed import seed

__all__ = [
    "CATALOG_MAPPINGS",
    "CATEGORY_MAPPING",
    "Category",
    "INVOICE_MAPPING",
    "Invoice",
    "InvoiceLine",
    "PRODUCT_IN_CATEGORY_MAPPING",
    "PRODUCT_MAPPING",
    "Product",
    "ProductInCategory",
    "USER_MAPPING",
    "User",
    "seed",
]
