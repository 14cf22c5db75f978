"""Persistence mappings for catalog entities."""

from packages.unit_of_work import EntityMapping

from .entities import (
    Category,
    Invoice,
    Product,
    ProductInCategory,
    User,
    utc_now,
)

USER_MAPPING = EntityMapping(
    entity_type=User,
    table="users",
    generated_fields=("id", "created_at"),
    server_defaults={"created_at": utc_now},
    ddl="""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_name TEXT NOT NULL UNIQUE,
            email TEXT NOT NULL,
            is_admin INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        )
    """,
)

CATEGORY_MAPPING = EntityMapping(
    entity_type=Category,
    table="categories",
    generated_fields=("id",),
    ddl="""
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """,
)

PRODUCT_MAPPING = EntityMapping(
    entity_type=Product,
    table="products",
    generated_fields=("id", "created_at"),
    json_fields=("tags",),
    server_defaults={"created_at": utc_now},
    ddl="""
        CREATE TABLE IF NOT EXISTS products (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            price TEXT NOT NULL,
            stock INTEGER NOT NULL DEFAULT 0,
            tags TEXT NOT NULL DEFAULT '[]',
            is_deleted INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        )
    """,
)

PRODUCT_IN_CATEGORY_MAPPING = EntityMapping(
    entity_type=ProductInCategory,
    table="product_in_categories",
    key_fields=("product_id", "category_id"),
    ddl="""
        CREATE TABLE IF NOT EXISTS product_in_categories (
            product_id INTEGER NOT NULL REFERENCES products(id),
            category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
            PRIMARY KEY (product_id, category_id)
        )
    """,
)

INVOICE_MAPPING = EntityMapping(
    entity_type=Invoice,
    table="invoices",
    generated_fields=("id", "issued_at"),
    json_fields=("lines",),
    server_defaults={"issued_at": utc_now},
    ddl="""
        CREATE TABLE IF NOT EXISTS invoices (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id),
            lines TEXT NOT NULL DEFAULT '[]',
            total TEXT NOT NULL DEFAULT '0',
            issued_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        )
    """,
)

CATALOG_MAPPINGS = (
    USER_MAPPING,
    CATEGORY_MAPPING,
    PRODUCT_MAPPING,
    PRODUCT_IN_CATEGORY_MAPPING,
    INVOICE_MAPPING,
)
