from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import CART_RATE_LIMIT
from shared.security import CurrentUser, get_current_user, limiter

from .schemas import (
    CartInfoResponse,
    CartItemCreate,
    CartLineRef,
    CartLineResponse,
    CartQuantityUpdate,
    CartResponse,
    CartValidationResponse,
)
from .service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
async def get_cart(user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    items = await CartService.items(db, user.id)
    return CartResponse(
        items=[CartLineResponse.model_validate(i) for i in items],
        cart_total=await CartService.total(db, user.id),
        cart_count=await CartService.count(db, user.id),
    )


@router.post("/add", response_model=CartInfoResponse)
@limiter.limit(CART_RATE_LIMIT)
async def add_to_cart(
    request: Request,
    payload: CartItemCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CartService.add_item(db, user.id, payload.product_id, payload.quantity, payload.notes)
    return CartInfoResponse(
        message="Product added to cart",
        cart_count=await CartService.count(db, user.id),
    )


@router.post("/update-quantity", response_model=CartInfoResponse)
async def update_quantity(
    payload: CartQuantityUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CartService.update_quantity(db, user.id, payload.cart_id, payload.quantity)
    return CartInfoResponse(
        message="Quantity updated",
        cart_total=await CartService.total(db, user.id),
        cart_count=await CartService.count(db, user.id),
    )


@router.post("/remove", response_model=CartInfoResponse)
async def remove_from_cart(
    payload: CartLineRef,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CartService.remove_item(db, user.id, payload.cart_id)
    return CartInfoResponse(
        message="Product removed from cart",
        cart_total=await CartService.total(db, user.id),
        cart_count=await CartService.count(db, user.id),
    )


@router.post("/clear", response_model=CartInfoResponse)
async def clear_cart(user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await CartService.clear(db, user.id)
    return CartInfoResponse(message="Cart cleared", cart_total=0, cart_count=0)


@router.get("/info", response_model=CartInfoResponse)
async def cart_info(user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return CartInfoResponse(
        cart_total=await CartService.total(db, user.id),
        cart_count=await CartService.count(db, user.id),
    )


@router.get("/validate", response_model=CartValidationResponse)
async def validate_cart(user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    violations = await CartService.validate(db, user.id)
    return CartValidationResponse(
        success=not violations,
        is_valid=not violations,
        errors=[v.message for v in violations],
        violations=violations,
    )
