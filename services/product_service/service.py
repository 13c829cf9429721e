import re
import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import Conflict, NotFound, OwnershipViolation, ValidationFailed
from shared.security import CurrentUser

from .models import Category, Product, Shop
from .repository import CategoryRepository, ProductRepository, ShopRepository
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
)

logger = structlog.get_logger(__name__)

_NON_WORD = re.compile(r"[^\w]+", re.UNICODE)


def slugify(text: str) -> str:
    slug = _NON_WORD.sub("-", text.strip().lower()).strip("-_")
    return slug or uuid.uuid4().hex[:8]


async def _unique_slug(db: AsyncSession, text: str, exists) -> str:
    slug = slugify(text)
    while await exists(db, slug):
        slug = f"{slugify(text)}-{uuid.uuid4().hex[:6]}"
    return slug


class ProductService:

    @staticmethod
    async def list_products(db: AsyncSession, filters: ProductFilters) -> ProductPage:
        page, per_page = filters.page, filters.per_page
        category_id = None
        if filters.category:
            category = await CategoryRepository.get_by_slug(db, filters.category)
            if not category:
                return ProductPage(items=[], total=0, page=page, per_page=per_page)
            category_id = category.id

        products, total = await ProductRepository.search(
            db,
            q=filters.q,
            category_id=category_id,
            min_price=filters.min_price,
            max_price=filters.max_price,
            in_stock=filters.in_stock,
            sort=filters.sort,
            offset=(page - 1) * per_page,
            limit=per_page,
        )
        return ProductPage(
            items=[ProductResponse.model_validate(p) for p in products],
            total=total,
            page=page,
            per_page=per_page,
        )

    @staticmethod
    async def show(db: AsyncSession, slug: str) -> ProductDetailResponse:
        product = await ProductRepository.get_active_by_slug(db, slug)
        if not product:
            raise NotFound("Product not found")
        await ProductRepository.increment_views(db, product.id)
        related = await ProductRepository.related(db, product)
        detail = ProductDetailResponse.model_validate(product)
        detail.related = [ProductResponse.model_validate(p) for p in related]
        return detail

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Product:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    @staticmethod
    async def create_product(db: AsyncSession, user: CurrentUser, data: ProductCreate) -> Product:
        shop = await ShopRepository.get_by_user(db, user.id)
        if not shop:
            raise NotFound("Set up your shop before adding products")
        if await ProductRepository.get_by_sku(db, data.sku):
            raise Conflict(f"SKU {data.sku} is already in use")
        if data.category_id is not None and not await CategoryRepository.get_by_id(db, data.category_id):
            raise ValidationFailed(
                "Invalid data", errors=[{"field": "category_id", "message": "Unknown category"}]
            )

        product = Product(
            shop_id=shop.id,
            category_id=data.category_id,
            name=data.name,
            slug=await _unique_slug(db, data.name, ProductRepository.slug_exists),
            description=data.description,
            sku=data.sku,
            price=data.price,
            stock=data.stock,
            is_active=True,
        )
        product = await ProductRepository.create_product(db, product)
        logger.info("product_created", product_id=product.id, shop_id=shop.id)
        return product

    @staticmethod
    async def _owned_product(db: AsyncSession, user: CurrentUser, product_id: int) -> Product:
        product = await ProductService.get_product_by_id(db, product_id)
        if user.is_admin:
            return product
        shop = await ShopRepository.get_by_user(db, user.id)
        if not shop or product.shop_id != shop.id:
            raise OwnershipViolation("You are not allowed to modify this product")
        return product

    @staticmethod
    async def update_product(
        db: AsyncSession, user: CurrentUser, product_id: int, data: ProductUpdate
    ) -> Product:
        product = await ProductService._owned_product(db, user, product_id)
        changes = data.model_dump(exclude_unset=True)

        if "sku" in changes and changes["sku"] != product.sku:
            if await ProductRepository.get_by_sku(db, changes["sku"]):
                raise Conflict(f"SKU {changes['sku']} is already in use")
        if changes.get("category_id") is not None:
            if not await CategoryRepository.get_by_id(db, changes["category_id"]):
                raise ValidationFailed(
                    "Invalid data", errors=[{"field": "category_id", "message": "Unknown category"}]
                )

        for field, value in changes.items():
            setattr(product, field, value)
        product = await ProductRepository.update_product(db, product)
        logger.info("product_updated", product_id=product.id, fields=sorted(changes))
        return product

    @staticmethod
    async def delete_product(db: AsyncSession, user: CurrentUser, product_id: int) -> None:
        # Soft delete: cart and order lines keep pointing at the row.
        product = await ProductService._owned_product(db, user, product_id)
        product.is_active = False
        await ProductRepository.update_product(db, product)
        logger.info("product_deactivated", product_id=product.id)


class CategoryService:

    @staticmethod
    async def create(db: AsyncSession, data: CategoryCreate) -> Category:
        if data.parent_id is not None and not await CategoryRepository.get_by_id(db, data.parent_id):
            raise NotFound("Parent category not found")
        slug = slugify(data.name)
        if await CategoryRepository.get_by_slug(db, slug):
            raise Conflict(f"Category {data.name} already exists")
        category = Category(
            name=data.name,
            slug=slug,
            parent_id=data.parent_id,
            sort_order=data.sort_order,
        )
        return await CategoryRepository.create(db, category)

    @staticmethod
    async def tree(db: AsyncSession) -> list[CategoryResponse]:
        """Active top-level categories, each with its direct active children."""
        categories = await CategoryRepository.list_active(db)
        children: dict[int, list[CategorySummary]] = {}
        for c in categories:
            if c.parent_id is not None:
                children.setdefault(c.parent_id, []).append(CategorySummary.model_validate(c))
        return [
            CategoryResponse(
                id=c.id,
                name=c.name,
                slug=c.slug,
                parent_id=None,
                children=children.get(c.id, []),
            )
            for c in categories
            if c.parent_id is None
        ]


class ShopService:

    @staticmethod
    async def setup(db: AsyncSession, user_id: int, data: ShopCreate) -> Shop:
        if await ShopRepository.get_by_user(db, user_id):
            raise Conflict("Shop already set up")
        shop = Shop(
            user_id=user_id,
            name=data.name,
            slug=await _unique_slug(db, data.name, ShopRepository.slug_exists),
            description=data.description,
            phone=data.phone,
            city=data.city,
        )
        shop = await ShopRepository.create(db, shop)
        logger.info("shop_created", shop_id=shop.id, user_id=user_id)
        return shop

    @staticmethod
    async def get_for_user(db: AsyncSession, user_id: int) -> Shop:
        shop = await ShopRepository.get_by_user(db, user_id)
        if not shop:
            raise NotFound("Shop not set up")
        return shop
