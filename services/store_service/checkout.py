"""Order placement and hosted-payment confirmation.

Both checkout paths price the cart from the catalog, then write the order
header, its items and the stock reservation in a single transaction. A hosted
checkout session carries the priced cart in its metadata, so the order built
on confirmation matches what the customer paid for even if the catalog has
changed in between.
"""

import json
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import HTTPException
from libs.auth.models import AuthUser
from libs.common.currency import baht_to_satang, satang_to_baht
from libs.common.logging import get_logger
from services.store_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    Product,
)
from services.store_service.schemas import (
    CheckoutCustomer,
    ConfirmOrderRequest,
    OrderLineIn,
    PlaceOrderRequest,
    ShippingDetails,
)
from services.store_service.stripe_client import CheckoutLineItem, CheckoutSession
from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

PLACE_ORDER_FAILED = "Failed to place order. Please try again."
CONFIRM_ORDER_FAILED = "Failed to confirm order"

# Stripe allows 50 metadata keys of up to 500 characters each
CART_METADATA_PREFIX = "line_"
MAX_CARD_CHECKOUT_LINES = 50
METADATA_NAME_LENGTH = 200


@dataclass
class PricedLine:
    """A requested line with the unit price the customer is charged."""

    product_id: Optional[uuid.UUID]
    name: str
    unit_price: int
    quantity: int

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "PricedLine":
        return cls(product.id, product.name, product.price, quantity)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


def merge_lines(items: Iterable[OrderLineIn]) -> dict[uuid.UUID, int]:
    """Collapse repeated product ids into one quantity per product."""
    merged: dict[uuid.UUID, int] = {}
    for item in items:
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return merged


def compute_total(lines: Iterable[PricedLine]) -> int:
    return sum(line.line_total for line in lines)


async def _load_products(
    db: AsyncSession, product_ids: Iterable[uuid.UUID], active_only: bool = True
) -> dict[uuid.UUID, Product]:
    query = select(Product).where(Product.id.in_(list(product_ids)))
    if active_only:
        query = query.where(Product.is_active.is_(True))
    result = await db.execute(query)
    return {product.id: product for product in result.scalars().all()}


async def price_lines(
    db: AsyncSession,
    items: list[OrderLineIn],
    check_stock: bool = True,
) -> list[PricedLine]:
    """Load requested products and price them from the catalog.

    Raises 400 for an empty request, unknown or inactive products, and
    tracked stock that cannot cover the requested quantity.
    """
    if not items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    quantities = merge_lines(items)
    products = await _load_products(db, quantities)

    missing = [str(pid) for pid in quantities if pid not in products]
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown or unavailable product(s): {', '.join(missing)}",
        )

    for item in items:
        catalog_price = products[item.product_id].price
        if item.unit_price is not None and item.unit_price != catalog_price:
            logger.info(
                f"Cart price for {item.product_id} was {item.unit_price}, "
                f"catalog price is {catalog_price}"
            )

    if check_stock:
        for pid, qty in quantities.items():
            product = products[pid]
            if product.stock is not None and product.stock < qty:
                raise HTTPException(
                    status_code=400,
                    detail=f"Only {product.stock} left of {product.name}",
                )

    return [PricedLine.from_product(products[pid], qty) for pid, qty in quantities.items()]


async def reserve_stock(
    db: AsyncSession, lines: list[PricedLine], allow_short: bool = False
) -> None:
    """Decrement tracked stock with conditional updates.

    The ``stock >= quantity`` guard runs in the database, so two concurrent
    orders cannot both take the last units. With ``allow_short`` (payment
    already taken) stock is floored at zero instead of refusing the order.
    """
    for line in lines:
        if line.product_id is None:
            continue

        if allow_short:
            await db.execute(
                update(Product)
                .where(Product.id == line.product_id, Product.stock.is_not(None))
                .values(
                    stock=case(
                        (Product.stock >= line.quantity, Product.stock - line.quantity),
                        else_=0,
                    )
                )
                .execution_options(synchronize_session=False)
            )
            continue

        result = await db.execute(
            update(Product)
            .where(
                Product.id == line.product_id,
                Product.stock.is_not(None),
                Product.stock >= line.quantity,
            )
            .values(stock=Product.stock - line.quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            continue

        current = await db.execute(
            select(Product.stock).where(Product.id == line.product_id)
        )
        stock = current.scalar_one_or_none()
        if stock is None:
            # Untracked stock
            continue
        raise HTTPException(
            status_code=400, detail=f"Only {stock} left of {line.name}"
        )


def build_order(
    user: AuthUser,
    lines: list[PricedLine],
    shipping: dict,
    payment_method: PaymentMethod,
    email: Optional[str] = None,
    payment_provider: Optional[str] = None,
    payment_session_id: Optional[str] = None,
    client_request_id: Optional[str] = None,
    review_note: Optional[str] = None,
) -> Order:
    """Build an Order with its item snapshots."""
    items = [
        OrderItem(
            product_id=line.product_id,
            product_name=line.name,
            unit_price=line.unit_price,
            quantity=line.quantity,
            line_total=line.line_total,
        )
        for line in lines
    ]

    return Order(
        user_id=user.user_id,
        email=email or (str(user.email) if user.email else None),
        total_amount=compute_total(lines),
        status=OrderStatus.PENDING,
        payment_method=payment_method,
        payment_provider=payment_provider,
        payment_session_id=payment_session_id,
        client_request_id=client_request_id,
        needs_review=review_note is not None,
        review_note=review_note,
        items=items,
        **shipping,
    )


async def get_order_with_items(
    db: AsyncSession, order_id: uuid.UUID, user_id: Optional[str] = None
) -> Optional[Order]:
    query = (
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items))
        .execution_options(populate_existing=True)
    )
    if user_id is not None:
        query = query.where(Order.user_id == user_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _find_by_request_id(
    db: AsyncSession, user_id: str, client_request_id: str
) -> Optional[Order]:
    result = await db.execute(
        select(Order)
        .where(
            Order.user_id == user_id,
            Order.client_request_id == client_request_id,
        )
        .options(selectinload(Order.items))
    )
    return result.scalar_one_or_none()


async def _find_by_session_id(db: AsyncSession, session_id: str) -> Optional[Order]:
    result = await db.execute(
        select(Order).where(Order.payment_session_id == session_id)
    )
    return result.scalar_one_or_none()


# ============================================================================
# DELIVERY-FORM CHECKOUT
# ============================================================================


async def place_order(
    db: AsyncSession, user: AuthUser, request: PlaceOrderRequest
) -> Order:
    """Turn a cart and delivery form into one pending order.

    A repeated ``client_request_id`` returns the order created the first
    time instead of a duplicate.
    """
    if request.client_request_id:
        existing = await _find_by_request_id(db, user.user_id, request.client_request_id)
        if existing:
            logger.info(
                f"Order {existing.id} already placed for request {request.client_request_id}"
            )
            return existing

    lines = await price_lines(db, request.items)
    order = build_order(
        user,
        lines,
        shipping=request.shipping.model_dump(),
        payment_method=request.payment_method,
        client_request_id=request.client_request_id,
    )
    db.add(order)

    try:
        await reserve_stock(db, lines)
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        if request.client_request_id:
            # Lost a race with a concurrent resubmission of the same checkout
            existing = await _find_by_request_id(
                db, user.user_id, request.client_request_id
            )
            if existing:
                return existing
        logger.exception("Integrity error while placing order")
        raise HTTPException(status_code=500, detail=PLACE_ORDER_FAILED)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Database error while placing order")
        raise HTTPException(status_code=500, detail=PLACE_ORDER_FAILED)

    logger.info(
        f"Order {order.id} placed by {user.user_id}: "
        f"{len(lines)} line(s), total {order.total_amount}"
    )
    return order


# ============================================================================
# HOSTED CARD CHECKOUT
# ============================================================================


def build_checkout_line_items(lines: list[PricedLine]) -> list[CheckoutLineItem]:
    return [
        CheckoutLineItem(
            name=line.name,
            unit_amount=baht_to_satang(line.unit_price),
            quantity=line.quantity,
        )
        for line in lines
    ]


def cart_metadata(lines: list[PricedLine]) -> dict[str, str]:
    """Encode the priced cart as checkout session metadata, one key per line."""
    if len(lines) > MAX_CARD_CHECKOUT_LINES:
        raise HTTPException(
            status_code=400,
            detail=f"Card checkout supports at most {MAX_CARD_CHECKOUT_LINES} products",
        )
    metadata = {}
    for index, line in enumerate(lines):
        metadata[f"{CART_METADATA_PREFIX}{index}"] = json.dumps(
            {
                "id": str(line.product_id),
                "name": line.name[:METADATA_NAME_LENGTH],
                "price": line.unit_price,
                "qty": line.quantity,
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )
    return metadata


def lines_from_metadata(metadata: dict) -> Optional[list[PricedLine]]:
    """Decode the cart written by ``cart_metadata``; None when absent or unreadable."""
    keys = [
        key
        for key in metadata
        if key.startswith(CART_METADATA_PREFIX)
        and key[len(CART_METADATA_PREFIX):].isdigit()
    ]
    if not keys:
        return None

    keys.sort(key=lambda key: int(key[len(CART_METADATA_PREFIX):]))
    lines = []
    try:
        for key in keys:
            entry = json.loads(metadata[key])
            lines.append(
                PricedLine(
                    product_id=uuid.UUID(entry["id"]),
                    name=str(entry["name"]),
                    unit_price=int(entry["price"]),
                    quantity=int(entry["qty"]),
                )
            )
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Unreadable cart metadata on checkout session: {e}")
        return None
    return lines


def shipping_from_customer(customer: CheckoutCustomer) -> dict:
    """Validate the contact block of a hosted checkout as a delivery form."""
    try:
        shipping = ShippingDetails(
            full_name=customer.full_name or "",
            phone=customer.phone or "",
            address_line1=customer.address_line1 or "",
            city=customer.city or "",
            province=customer.province or "",
            postal_code=customer.postal_code or "",
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Incomplete shipping details: {e}")
    return shipping.model_dump()


def _order_for_session(order: Order, user: AuthUser) -> Order:
    if order.user_id != user.user_id:
        raise HTTPException(status_code=409, detail="Checkout session already used")
    return order


async def _lines_for_paid_session(
    db: AsyncSession,
    request: ConfirmOrderRequest,
    session: CheckoutSession,
    review_notes: list[str],
) -> list[PricedLine]:
    """Work out what a paid session bought.

    The session's own cart snapshot wins. Products removed from the catalog
    since are kept by name only. Sessions without a snapshot are priced from
    the catalog, inactive products included, since the payment is already
    taken.
    """
    lines = lines_from_metadata(session.metadata)

    if lines is None:
        quantities = merge_lines(request.items)
        products = await _load_products(db, quantities, active_only=False)
        unknown = [str(pid) for pid in quantities if pid not in products]
        if unknown:
            review_notes.append(f"Unknown products left out: {', '.join(unknown)}")
        return [
            PricedLine.from_product(products[pid], qty)
            for pid, qty in quantities.items()
            if pid in products
        ]

    products = await _load_products(
        db, [line.product_id for line in lines], active_only=False
    )
    removed = []
    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            removed.append(line.name)
            line.product_id = None
        elif product.price != line.unit_price:
            logger.info(
                f"Price of {product.id} changed from {line.unit_price} to "
                f"{product.price} after session {session.id} was paid"
            )
    if removed:
        review_notes.append(f"No longer in catalog: {', '.join(removed)}")

    requested = merge_lines(request.items)
    paid_for = {line.product_id: line.quantity for line in lines if line.product_id}
    if requested and requested != paid_for:
        logger.warning(
            f"Confirmation for session {session.id} listed different items than "
            f"were paid for; using the paid cart"
        )
    return lines


async def confirm_paid_order(
    db: AsyncSession,
    user: AuthUser,
    request: ConfirmOrderRequest,
    session: CheckoutSession,
) -> Order:
    """Materialise the order for a hosted checkout session.

    Nothing is written unless the session is paid. A paid session always
    produces an order; discrepancies between the payment and the items are
    recorded on the order for review instead of being rejected. Confirming
    the same session twice returns the first order.
    """
    if not session.is_paid:
        raise HTTPException(status_code=400, detail="Payment not completed")

    if session.client_reference_id and session.client_reference_id != user.user_id:
        raise HTTPException(
            status_code=400, detail="Checkout session belongs to another user"
        )

    existing = await _find_by_session_id(db, session.id)
    if existing:
        return _order_for_session(existing, user)

    shipping = shipping_from_customer(request.user)

    review_notes: list[str] = []
    lines = await _lines_for_paid_session(db, request, session, review_notes)
    if not lines:
        raise HTTPException(
            status_code=400, detail="Checkout session has no recognisable items"
        )

    total = compute_total(lines)
    if session.amount_total is not None and session.amount_total != baht_to_satang(total):
        logger.warning(
            f"Session {session.id} paid {satang_to_baht(session.amount_total)} THB, "
            f"items total {total} THB"
        )
        review_notes.append(
            f"Paid {satang_to_baht(session.amount_total)} THB, items total {total} THB"
        )

    order = build_order(
        user,
        lines,
        shipping=shipping,
        payment_method=PaymentMethod.CARD,
        email=request.user.email or session.customer_email,
        payment_provider="stripe",
        payment_session_id=session.id,
        review_note="; ".join(review_notes) or None,
    )
    db.add(order)

    try:
        await reserve_stock(db, lines, allow_short=True)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # A concurrent confirmation of the same session got there first
        existing = await _find_by_session_id(db, session.id)
        if existing:
            logger.info(f"Session {session.id} already confirmed as order {existing.id}")
            return _order_for_session(existing, user)
        logger.exception(f"Integrity error while confirming session {session.id}")
        raise HTTPException(status_code=500, detail=CONFIRM_ORDER_FAILED)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Database error while confirming session {session.id}")
        raise HTTPException(status_code=500, detail=CONFIRM_ORDER_FAILED)

    if order.needs_review:
        logger.warning(f"Order {order.id} flagged for review: {order.review_note}")
    logger.info(f"Order {order.id} confirmed for paid session {session.id}")
    return order
