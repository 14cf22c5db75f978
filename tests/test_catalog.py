"""Tests for catalog entities and seed data."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from packages.audit_capture import ActorContext, AuditCaptureConfig, OperationKind
from packages.catalog import (
    CATALOG_MAPPINGS,
    PRODUCT_IN_CATEGORY_MAPPING,
    Category,
    Invoice,
    InvoiceLine,
    Product,
    ProductInCategory,
    User,
    seed,
)
from packages.unit_of_work import AuditedUnitOfWork, InMemoryUnitOfWork, SqliteUnitOfWork


class TestEntities:
    """Tests for catalog entity validation."""

    def test_assignment_is_validated(self):
        """Test invalid assignments are rejected."""
        product = Product(name="Laptop", price=Decimal("10"))

        with pytest.raises(ValidationError):
            product.stock = -1

    def test_composite_key_mapping(self):
        """Test product links are keyed by both ids and nothing is generated."""
        assert PRODUCT_IN_CATEGORY_MAPPING.key_fields == ("product_id", "category_id")
        assert PRODUCT_IN_CATEGORY_MAPPING.generated_key is None

    def test_mapping_kinds(self):
        """Test each mapping reports its entity kind."""
        assert [m.entity_kind for m in CATALOG_MAPPINGS] == [
            "User",
            "Category",
            "Product",
            "ProductInCategory",
            "Invoice",
        ]


class TestSeed:
    """Tests for catalog seeding."""

    def test_seed_memory(self):
        """Test seeding inserts categories and the admin user."""
        uow = InMemoryUnitOfWork(CATALOG_MAPPINGS)

        assert seed(uow) == 4

        assert [row["name"] for row in uow.rows(Category)] == ["Electronics", "Books", "Home"]
        [admin] = uow.rows(User)
        assert admin["is_admin"] is True
        assert uow.list_audit_records() == []

    def test_seed_sqlite(self, tmp_path):
        """Test seeding a SQLite catalog."""
        uow = SqliteUnitOfWork(tmp_path / "seed.db", CATALOG_MAPPINGS)

        seed(uow)

        assert uow.get(Category, 2).name == "Books"
        assert uow.get(User, 1).user_name == "admin"
        assert uow.list_audit_records() == []


class TestCatalogAuditing:
    """Audited commits over catalog entities."""

    def test_invoice_lines_are_diffed_structurally(self, tmp_path):
        """Test replacing invoice lines with equal copies is not a change."""
        uow = InMemoryUnitOfWork(CATALOG_MAPPINGS)
        audited = AuditedUnitOfWork(uow, config=AuditCaptureConfig(outbox_path="", _env_file=None))
        seed(uow)
        invoice = Invoice(
            user_id=1,
            lines=[InvoiceLine(product_id=1, quantity=2, unit_price=Decimal("5"))],
            total=Decimal("10"),
        )
        uow.add(invoice)
        uow.save_changes()

        invoice.lines = [InvoiceLine(product_id=1, quantity=2, unit_price=Decimal("5"))]
        invoice.total = Decimal("12")
        result = audited.commit(ActorContext(actor_id="u", method="PUT"))

        [record] = result.audit_records
        assert record.changed_fields == ["total"]
        assert record.old_values == {"total": Decimal("10")}

    def test_link_removal_is_audited_with_composite_key(self):
        """Test deleting a product link records both key fields."""
        uow = InMemoryUnitOfWork(CATALOG_MAPPINGS)
        audited = AuditedUnitOfWork(uow, config=AuditCaptureConfig(outbox_path="", _env_file=None))
        link = ProductInCategory(product_id=1, category_id=2)
        uow.add(link)
        uow.save_changes()

        uow.remove(link)
        [record] = audited.commit(ActorContext(actor_id="u", method="DELETE")).audit_records

        assert record.operation_kind is OperationKind.DELETE
        assert record.key_values == {"product_id": 1, "category_id": 2}
        assert record.old_values == {}
        assert record.new_values == {}
