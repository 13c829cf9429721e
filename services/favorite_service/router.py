from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import DEFAULT_PAGE_SIZE
from shared.security import CurrentUser, get_current_user
from services.product_service.schemas import ProductResponse

from .schemas import FavoritePage, FavoriteToggleResponse
from .service import FavoriteService

router = APIRouter(prefix="/favorites", tags=["Favorites"])

MESSAGES = {
    "added": "Product added to favorites",
    "removed": "Product removed from favorites",
}


@router.post("/toggle/{product_id}", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    product_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    action = await FavoriteService.toggle(db, user.id, product_id)
    return FavoriteToggleResponse(
        action=action,
        is_favorited=action == "added",
        message=MESSAGES[action],
    )


@router.delete("/{product_id}")
async def remove_favorite(
    product_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await FavoriteService.remove(db, user.id, product_id)
    return {"success": True, "message": MESSAGES["removed"]}


@router.get("", response_model=FavoritePage)
async def list_favorites(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    products, total = await FavoriteService.list_products(db, user.id, page, per_page)
    return FavoritePage(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        per_page=per_page,
    )
