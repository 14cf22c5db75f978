"""Catalog entities.

Plain pydantic models tracked by the unit of work. Fields assigned by the
store (auto-increment ids, insert timestamps) default to None until the
entity is written.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CatalogEntity(BaseModel):
    """Base for tracked catalog entities."""

    model_config = ConfigDict(validate_assignment=True)


class User(CatalogEntity):
    id: Optional[int] = None
    user_name: str = Field(..., min_length=1, max_length=100)
    email: str
    is_admin: bool = False
    created_at: Optional[datetime] = None


class Category(CatalogEntity):
    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    sort_order: int = 0


class Product(CatalogEntity):
    """Product with soft-delete flag.

    Deleting through the API sets ``is_deleted``; the row is kept.
    """

    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    tags: list[str] = Field(default_factory=list)
    is_deleted: bool = False
    created_at: Optional[datetime] = None


class ProductInCategory(CatalogEntity):
    """Link between a product and a category (composite key, not generated)."""

    product_id: int
    category_id: int


class InvoiceLine(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal


class Invoice(CatalogEntity):
    id: Optional[int] = None
    user_id: int
    lines: list[InvoiceLine] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    issued_at: Optional[datetime] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
