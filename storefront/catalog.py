"""Product browsing helpers for the shop page."""

from typing import Any, Optional

from services.store_service.filters import (
    STOCK_ALL,
    STOCK_IN,
    filter_products,
    is_out_of_stock,
    product_facets,
    sort_out_of_stock_last,
)
from storefront import api

__all__ = [
    "browse",
    "fetch_catalog",
    "is_out_of_stock",
    "product_facets",
    "sort_out_of_stock_last",
]


def browse(
    products: list[dict[str, Any]],
    mood: Optional[str] = None,
    size: Optional[str] = None,
    in_stock_only: bool = False,
    search: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Apply the shop filters, then sink sold-out products to the end."""
    matching = filter_products(
        products,
        mood=mood,
        size=size,
        stock=STOCK_IN if in_stock_only else STOCK_ALL,
        search=search,
    )
    return sort_out_of_stock_last(matching)


async def fetch_catalog() -> dict[str, Any]:
    """Load the catalog once and return it sorted, with its facet values."""
    products = await api.list_products()
    return {
        "products": sort_out_of_stock_last(products),
        "facets": product_facets(products),
    }
