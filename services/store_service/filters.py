"""In-memory list filters shared by the admin screens and the storefront.

Predicates accept ORM rows or plain dicts (as returned by the public API).
"""

from typing import Any, Iterable, Optional, Sequence

STOCK_ALL = "all"
STOCK_IN = "in_stock"
STOCK_OUT = "out_of_stock"
STOCK_FILTERS = (STOCK_ALL, STOCK_IN, STOCK_OUT)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _text(value: Any) -> str:
    if value is None:
        return ""
    # str-enums render as their value
    return str(getattr(value, "value", value)).lower()


def matches_search(obj: Any, search: Optional[str], fields: Sequence[str]) -> bool:
    """Case-insensitive substring match over any of ``fields``."""
    if not search or not search.strip():
        return True
    needle = search.strip().lower()
    return any(needle in _text(_field(obj, name)) for name in fields)


# ============================================================================
# PRODUCTS
# ============================================================================

PRODUCT_SEARCH_FIELDS = ("name", "description", "mood", "size")


def is_out_of_stock(product: Any) -> bool:
    stock = _field(product, "stock")
    return stock is not None and stock <= 0


def sort_out_of_stock_last(products: Iterable[Any]) -> list:
    """Stable sort that keeps the incoming order but sinks sold-out items."""
    return sorted(products, key=is_out_of_stock)


def product_facets(products: Iterable[Any]) -> dict[str, list[str]]:
    """Distinct moods and sizes, sorted, for filter dropdowns."""
    moods: set[str] = set()
    sizes: set[str] = set()
    for product in products:
        if _field(product, "mood"):
            moods.add(_field(product, "mood"))
        if _field(product, "size"):
            sizes.add(_field(product, "size"))
    return {"moods": sorted(moods), "sizes": sorted(sizes)}


def product_matches(
    product: Any,
    mood: Optional[str] = None,
    size: Optional[str] = None,
    stock: str = STOCK_ALL,
    search: Optional[str] = None,
) -> bool:
    if stock not in STOCK_FILTERS:
        raise ValueError(f"Unknown stock filter: {stock}")
    if mood and _field(product, "mood") != mood:
        return False
    if size and _field(product, "size") != size:
        return False
    if stock == STOCK_IN and is_out_of_stock(product):
        return False
    if stock == STOCK_OUT and not is_out_of_stock(product):
        return False
    return matches_search(product, search, PRODUCT_SEARCH_FIELDS)


def filter_products(products: Iterable[Any], **criteria) -> list:
    return [p for p in products if product_matches(p, **criteria)]


# ============================================================================
# ORDERS AND NOTIFICATIONS
# ============================================================================

ORDER_SEARCH_FIELDS = (
    "id",
    "full_name",
    "city",
    "province",
    "address_line1",
    "payment_method",
)

NOTIFICATION_SEARCH_FIELDS = ("title", "body", "category")


def order_matches(order: Any, status: Any = None, search: Optional[str] = None) -> bool:
    if status is not None and _field(order, "status") != status:
        return False
    return matches_search(order, search, ORDER_SEARCH_FIELDS)


def notification_matches(notification: Any, search: Optional[str] = None) -> bool:
    return matches_search(notification, search, NOTIFICATION_SEARCH_FIELDS)
