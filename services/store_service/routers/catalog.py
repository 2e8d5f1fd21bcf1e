"""Store catalog router: public product listing."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from libs.db.session import get_async_db
from services.store_service.models import Product
from services.store_service.schemas import ProductResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    db: AsyncSession = Depends(get_async_db),
):
    """List active products, newest first."""
    query = (
        select(Product)
        .where(Product.is_active.is_(True))
        .order_by(Product.created_at.desc())
    )
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Get a single active product."""
    query = select(Product).where(
        Product.id == product_id, Product.is_active.is_(True)
    )
    result = await db.execute(query)
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
