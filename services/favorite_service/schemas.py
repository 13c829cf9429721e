from typing import List, Literal

from pydantic import BaseModel

from services.product_service.schemas import ProductResponse


class FavoriteToggleResponse(BaseModel):
    success: bool = True
    action: Literal["added", "removed"]
    is_favorited: bool
    message: str


class FavoritePage(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    per_page: int
