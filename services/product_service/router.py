from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import CurrentUser, Role, get_optional_user, require_permission, require_roles
from services.favorite_service.service import FavoriteService

from .schemas import (
    CategoryCreate,
    CategoryResponse,
    CategorySummary,
    ProductCreate,
    ProductDetailResponse,
    ProductFilters,
    ProductPage,
    ProductResponse,
    ProductUpdate,
    ShopCreate,
    ShopResponse,
)
from .service import CategoryService, ProductService, ShopService

router = APIRouter(prefix="/products", tags=["Catalog"])
category_router = APIRouter(prefix="/categories", tags=["Catalog"])
shop_router = APIRouter(prefix="/shop", tags=["Shop"])


@router.get("", response_model=ProductPage)
async def list_products(
    filters: Annotated[ProductFilters, Query()],
    db: AsyncSession = Depends(get_db),
):
    return await ProductService.list_products(db, filters)


@router.get("/{slug}", response_model=ProductDetailResponse)
async def show_product(
    slug: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    detail = await ProductService.show(db, slug)
    if user is not None:
        detail.is_favorited = await FavoriteService.is_favorited(db, user.id, detail.id)
    return detail


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    user: CurrentUser = Depends(require_permission("create_products")),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService.create_product(db, user, payload)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    user: CurrentUser = Depends(require_permission("edit_products")),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService.update_product(db, user, product_id, payload)


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    user: CurrentUser = Depends(require_permission("edit_products")),
    db: AsyncSession = Depends(get_db),
):
    await ProductService.delete_product(db, user, product_id)
    return {"success": True, "message": "Product deleted"}


@category_router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await CategoryService.tree(db)


@category_router.post("", response_model=CategorySummary, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await CategoryService.create(db, payload)


@shop_router.post("/setup", response_model=ShopResponse, status_code=status.HTTP_201_CREATED)
async def setup_shop(
    payload: ShopCreate,
    user: CurrentUser = Depends(require_roles(Role.SHOP)),
    db: AsyncSession = Depends(get_db),
):
    return await ShopService.setup(db, user.id, payload)
