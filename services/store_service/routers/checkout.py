"""Store checkout router: delivery-form orders and hosted card checkout."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.rate_limit import payment_limit
from libs.db.session import get_async_db
from services.store_service.checkout import (
    build_checkout_line_items,
    cart_metadata,
    confirm_paid_order,
    place_order,
    price_lines,
)
from services.store_service.schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    ConfirmOrderRequest,
    ConfirmOrderResponse,
    OrderResponse,
    PlaceOrderRequest,
)
from services.store_service.stripe_client import (
    StripeClient,
    StripeError,
    get_stripe_client,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["store"])

settings = get_settings()


# ============================================================================
# DELIVERY-FORM CHECKOUT
# ============================================================================


@router.post(
    "/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
async def create_order(
    payload: PlaceOrderRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Place a cash-on-delivery or bank-transfer order from the cart."""
    return await place_order(db, current_user, payload)


# ============================================================================
# HOSTED CARD CHECKOUT
# ============================================================================


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
@payment_limit
async def create_checkout_session(
    request: Request,
    payload: CheckoutSessionRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    stripe: StripeClient = Depends(get_stripe_client),
):
    """Open a hosted payment page for the cart, priced from the catalog.

    The priced cart rides along as session metadata so confirmation can
    build the order from what was actually paid for.
    """
    lines = await price_lines(db, payload.items)
    metadata = cart_metadata(lines)

    customer_email = None
    if payload.user and payload.user.email:
        customer_email = str(payload.user.email)
    elif current_user.email:
        customer_email = str(current_user.email)

    try:
        session = await stripe.create_checkout_session(
            line_items=build_checkout_line_items(lines),
            success_url=settings.checkout_success_url,
            cancel_url=settings.checkout_cancel_url,
            client_reference_id=current_user.user_id,
            customer_email=customer_email,
            metadata=metadata,
        )
    except StripeError as e:
        logger.error(f"Checkout session creation failed: {e.message}")
        raise HTTPException(status_code=500, detail="Failed to create checkout session")

    if not session.url:
        logger.error(f"Checkout session {session.id} returned no url")
        raise HTTPException(status_code=500, detail="Failed to create checkout session")

    logger.info(f"Checkout session {session.id} opened for {current_user.user_id}")
    return CheckoutSessionResponse(url=session.url)


@router.post("/confirm-order", response_model=ConfirmOrderResponse)
@payment_limit
async def confirm_order(
    request: Request,
    payload: ConfirmOrderRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    stripe: StripeClient = Depends(get_stripe_client),
):
    """Record the order once the hosted payment session reports paid."""
    try:
        session = await stripe.retrieve_checkout_session(payload.session_id)
    except StripeError as e:
        logger.error(f"Could not retrieve session {payload.session_id}: {e.message}")
        raise HTTPException(status_code=500, detail="Failed to confirm order")

    order = await confirm_paid_order(db, current_user, payload, session)
    return ConfirmOrderResponse(order_id=order.id)
