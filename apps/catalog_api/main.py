"""Main FastAPI application for the audited catalog.

Every write goes through an audited unit of work: the acting user comes from
the X-User-Id header and the HTTP method drives the soft-delete convention.
"""

from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from packages.audit_capture import (
    ActorContextMiddleware,
    AuditCaptureConfig,
    AuditStatus,
    CommitResult,
    get_audit_config,
)
from packages.catalog import CATALOG_MAPPINGS, Category, Product
from packages.structured_logging import get_logger, setup_logging
from packages.unit_of_work import AuditedUnitOfWork, InMemoryDatabase, UnitOfWorkBase
from packages.unit_of_work.factory import StoreBackend, create_unit_of_work

logger = get_logger(__name__)

# Global configuration instance
config: AuditCaptureConfig | None = None

# Tables behind the memory backend, shared by every request
memory_database: InMemoryDatabase | None = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    sort_order: int = 0


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    tags: list[str] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    tags: Optional[list[str]] = None


class WriteResponse(BaseModel):
    id: int
    audit_status: AuditStatus
    audit_records: int


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan management."""
    global config

    if config is None:
        config = get_audit_config()

    setup_logging(level=config.log_level, log_file=config.log_file, json_output=config.log_json)
    if config.store_backend == StoreBackend.MEMORY:
        _memory_database()

    logger.info("catalog_api_started", **config.to_dict())
    yield


def _memory_database() -> InMemoryDatabase:
    global memory_database

    if memory_database is None:
        memory_database = InMemoryDatabase()
    return memory_database


def _open_unit_of_work() -> tuple[UnitOfWorkBase, AuditedUnitOfWork]:
    settings = config or get_audit_config()
    database = None
    if settings.store_backend == StoreBackend.MEMORY:
        database = _memory_database()
    uow = create_unit_of_work(
        backend=settings.store_backend,
        mappings=CATALOG_MAPPINGS,
        db_path=settings.db_path,
        config=settings,
        database=database,
    )
    return uow, AuditedUnitOfWork(uow, config=settings)


def _respond(entity_id: int, result: CommitResult) -> WriteResponse:
    if result.degraded:
        logger.warning("catalog_write_audit_degraded", id=entity_id, error=result.audit_error)
    return WriteResponse(
        id=entity_id,
        audit_status=result.audit_status,
        audit_records=len(result.audit_records),
    )


# Create FastAPI app
app = FastAPI(
    title="Audited Catalog API",
    description="Catalog CRUD with audit capture on every commit",
    version="0.1.0",
    lifespan=lifespan,
)

# Add actor context middleware
app.add_middleware(ActorContextMiddleware, header_name=get_audit_config().actor_header)


@app.get("/")
async def root() -> dict:
    """Health check endpoint."""
    return {
        "service": "Audited Catalog",
        "version": "0.1.0",
        "status": "healthy",
    }


@app.post("/api/v1/categories", response_model=WriteResponse, status_code=201)
async def create_category(payload: CategoryCreate) -> WriteResponse:
    """Create a category."""
    uow, audited = _open_unit_of_work()
    category = Category(**payload.model_dump())
    uow.add(category)
    result = audited.commit()
    return _respond(category.id, result)


@app.delete("/api/v1/categories/{category_id}", response_model=WriteResponse)
async def delete_category(category_id: int) -> WriteResponse:
    """Hard-delete a category."""
    uow, audited = _open_unit_of_work()
    category = uow.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail=f"Category {category_id} not found")

    uow.remove(category)
    result = audited.commit()
    return _respond(category_id, result)


@app.post("/api/v1/products", response_model=WriteResponse, status_code=201)
async def create_product(payload: ProductCreate) -> WriteResponse:
    """Create a product."""
    uow, audited = _open_unit_of_work()
    product = Product(**payload.model_dump())
    uow.add(product)
    result = audited.commit()
    return _respond(product.id, result)


@app.get("/api/v1/products/{product_id}", response_model=Product)
async def get_product(product_id: int) -> Product:
    """Get a product by id."""
    uow, _ = _open_unit_of_work()
    product = uow.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


@app.put("/api/v1/products/{product_id}", response_model=WriteResponse)
async def update_product(product_id: int, payload: ProductUpdate) -> WriteResponse:
    """Update the given product fields."""
    uow, audited = _open_unit_of_work()
    product = uow.get(Product, product_id)
    if product is None or product.is_deleted:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    for name, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(product, name, value)

    result = audited.commit()
    return _respond(product_id, result)


@app.delete("/api/v1/products/{product_id}", response_model=WriteResponse)
async def delete_product(product_id: int) -> WriteResponse:
    """Soft-delete a product.

    The row is only flagged; the DELETE method makes the audit record a Delete.
    """
    uow, audited = _open_unit_of_work()
    product = uow.get(Product, product_id)
    if product is None or product.is_deleted:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    product.is_deleted = True
    result = audited.commit()
    return _respond(product_id, result)
