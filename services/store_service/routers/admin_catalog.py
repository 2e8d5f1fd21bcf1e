"""Admin store catalog router: product management."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.audit import log_audit
from services.store_service.dependencies import require_admin
from services.store_service.filters import STOCK_ALL, filter_products
from services.store_service.models import AuditEntityType, OrderItem, Product
from services.store_service.schemas import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])

AUDITED_PRODUCT_FIELDS = ("name", "price", "stock", "is_active")


def _snapshot(product: Product) -> dict:
    return {field: getattr(product, field) for field in AUDITED_PRODUCT_FIELDS}


async def _get_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/products", response_model=list[ProductResponse])
async def list_all_products(
    mood: Optional[str] = None,
    size: Optional[str] = None,
    stock: str = Query(STOCK_ALL, pattern="^(all|in_stock|out_of_stock)$"),
    search: Optional[str] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all products (including inactive), newest first."""
    result = await db.execute(select(Product).order_by(Product.created_at.desc()))
    products = result.scalars().all()
    return filter_products(products, mood=mood, size=size, stock=stock, search=search)


@router.post(
    "/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED
)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a new product."""
    product = Product(**product_in.model_dump())
    db.add(product)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Product slug already exists")

    log_audit(
        db,
        AuditEntityType.PRODUCT,
        product.id,
        "product_created",
        current_user.user_id,
        new_value=_snapshot(product),
    )
    await db.commit()
    await db.refresh(product)
    logger.info(f"Product {product.id} created by {current_user.user_id}")
    return product


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a product. Past orders keep their own name and price."""
    product = await _get_product(db, product_id)
    before = _snapshot(product)

    update_data = product_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(product, field, value)

    log_audit(
        db,
        AuditEntityType.PRODUCT,
        product.id,
        "product_updated",
        current_user.user_id,
        old_value=before,
        new_value=_snapshot(product),
    )
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Product slug already exists")
    await db.refresh(product)
    return product


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a product that no order refers to."""
    product = await _get_product(db, product_id)

    result = await db.execute(
        select(func.count())
        .select_from(OrderItem)
        .where(OrderItem.product_id == product_id)
    )
    if result.scalar():
        raise HTTPException(
            status_code=409,
            detail="Product has orders; deactivate it instead",
        )

    log_audit(
        db,
        AuditEntityType.PRODUCT,
        product.id,
        "product_deleted",
        current_user.user_id,
        old_value=_snapshot(product),
    )
    await db.delete(product)
    await db.commit()
    return None
