from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import CHECKOUT_RATE_LIMIT, DEFAULT_PAGE_SIZE
from shared.errors import EmptyCart
from shared.security import CurrentUser, Role, get_current_user, limiter, require_permission, require_roles
from services.cart_service.schemas import CartLineResponse
from services.cart_service.service import CartService

from .schemas import (
    CheckoutRequest,
    CheckoutResult,
    CheckoutSummary,
    OrderPage,
    OrderResponse,
    OrderStatusUpdate,
)
from .service import CheckoutService, OrderService

checkout_router = APIRouter(prefix="/checkout", tags=["Checkout"])
router = APIRouter(prefix="/orders", tags=["Orders"])

buyer_only = require_roles(Role.BUYER)


@checkout_router.get("", response_model=CheckoutSummary)
async def checkout_summary(user: CurrentUser = Depends(buyer_only), db: AsyncSession = Depends(get_db)):
    items = await CartService.items(db, user.id)
    if not items:
        raise EmptyCart()
    return CheckoutSummary(
        items=[CartLineResponse.model_validate(i) for i in items],
        cart_total=await CartService.total(db, user.id),
        cart_count=await CartService.count(db, user.id),
    )


@checkout_router.post("/process", response_model=CheckoutResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(CHECKOUT_RATE_LIMIT)
async def process_checkout(
    request: Request,
    payload: CheckoutRequest,
    user: CurrentUser = Depends(buyer_only),
    db: AsyncSession = Depends(get_db),
):
    order = await CheckoutService.checkout(db, user.id, payload)
    return CheckoutResult(
        message=f"Order placed successfully! Order number: {order.id}",
        order=OrderResponse.model_validate(order),
    )


@checkout_router.get("/confirm/{order_id}", response_model=OrderResponse)
async def confirm_order(
    order_id: int,
    user: CurrentUser = Depends(buyer_only),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_user_order(db, user.id, order_id)


@router.get("", response_model=OrderPage)
async def list_orders(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await OrderService.list_orders(db, user.id, page, per_page)
    return OrderPage(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_order(db, user, order_id)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.cancel_order(db, user.id, order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    user: CurrentUser = Depends(require_permission("edit_orders")),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.update_status(db, user, order_id, payload.status)
