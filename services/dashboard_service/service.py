import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import Conflict, NotFound
from services.auth_service.schemas import UserResponse
from services.order_service.schemas import OrderResponse
from services.product_service.schemas import ProductResponse, ShopResponse
from services.product_service.service import ShopService

from .models import DriverProfile, TechnicianProfile
from .repository import DashboardRepository
from .schemas import (
    AdminDashboard,
    AdminStats,
    BuyerDashboard,
    BuyerStats,
    DriverDashboard,
    DriverProfileCreate,
    DriverProfileResponse,
    ShopDashboard,
    ShopStats,
    TechnicianDashboard,
    TechnicianProfileCreate,
    TechnicianProfileResponse,
)

logger = structlog.get_logger(__name__)


def _orders(orders) -> list[OrderResponse]:
    return [OrderResponse.model_validate(o) for o in orders]


def _products(products) -> list[ProductResponse]:
    return [ProductResponse.model_validate(p) for p in products]


class DashboardService:

    @staticmethod
    async def buyer(db: AsyncSession, user_id: int) -> BuyerDashboard:
        stats = BuyerStats(
            total_orders=await DashboardRepository.order_count(db, user_id),
            pending_orders=await DashboardRepository.order_count(db, user_id, "pending"),
            completed_orders=await DashboardRepository.order_count(db, user_id, "delivered"),
            total_favorites=await DashboardRepository.favorite_count(db, user_id),
        )
        return BuyerDashboard(
            stats=stats,
            recent_orders=_orders(await DashboardRepository.recent_orders_for_user(db, user_id, 5)),
            favorite_products=_products(await DashboardRepository.favorite_products(db, user_id, 6)),
        )

    @staticmethod
    async def shop(db: AsyncSession, user_id: int) -> ShopDashboard:
        shop = await ShopService.get_for_user(db, user_id)
        stats = ShopStats(
            total_products=await DashboardRepository.shop_product_count(db, shop.id),
            total_orders=await DashboardRepository.shop_order_count(db, shop.id),
            pending_orders=await DashboardRepository.shop_order_count(db, shop.id, "pending"),
            total_revenue=await DashboardRepository.shop_revenue(db, shop.id),
        )
        return ShopDashboard(
            shop=ShopResponse.model_validate(shop),
            stats=stats,
            recent_orders=_orders(await DashboardRepository.shop_orders(db, shop.id, 0, 10)),
            top_products=_products(await DashboardRepository.top_products(db, 5, shop_id=shop.id)),
        )

    @staticmethod
    async def shop_products(db: AsyncSession, user_id: int, page: int, per_page: int) -> list[ProductResponse]:
        shop = await ShopService.get_for_user(db, user_id)
        return _products(await DashboardRepository.shop_products(db, shop.id, (page - 1) * per_page, per_page))

    @staticmethod
    async def shop_orders(db: AsyncSession, user_id: int, page: int, per_page: int) -> list[OrderResponse]:
        shop = await ShopService.get_for_user(db, user_id)
        return _orders(await DashboardRepository.shop_orders(db, shop.id, (page - 1) * per_page, per_page))

    @staticmethod
    async def setup_driver(db: AsyncSession, user_id: int, data: DriverProfileCreate) -> DriverProfile:
        if await DashboardRepository.get_driver(db, user_id):
            raise Conflict("Driver profile already set up")
        profile = DriverProfile(user_id=user_id, **data.model_dump())
        profile = await DashboardRepository.create_profile(db, profile)
        logger.info("driver_profile_created", user_id=user_id)
        return profile

    @staticmethod
    async def driver(db: AsyncSession, user_id: int) -> DriverDashboard:
        profile = await DashboardRepository.get_driver(db, user_id)
        if not profile:
            raise NotFound("Driver profile not set up")
        return DriverDashboard(
            profile=DriverProfileResponse.model_validate(profile),
            deliveries_in_transit=await DashboardRepository.orders_in_status(db, "shipped"),
        )

    @staticmethod
    async def setup_technician(db: AsyncSession, user_id: int, data: TechnicianProfileCreate) -> TechnicianProfile:
        if await DashboardRepository.get_technician(db, user_id):
            raise Conflict("Technician profile already set up")
        profile = TechnicianProfile(user_id=user_id, **data.model_dump())
        profile = await DashboardRepository.create_profile(db, profile)
        logger.info("technician_profile_created", user_id=user_id)
        return profile

    @staticmethod
    async def technician(db: AsyncSession, user_id: int) -> TechnicianDashboard:
        profile = await DashboardRepository.get_technician(db, user_id)
        if not profile:
            raise NotFound("Technician profile not set up")
        return TechnicianDashboard(profile=TechnicianProfileResponse.model_validate(profile))

    @staticmethod
    async def admin(db: AsyncSession) -> AdminDashboard:
        return AdminDashboard(
            stats=AdminStats(**await DashboardRepository.admin_counts(db)),
            recent_orders=_orders(await DashboardRepository.recent_orders(db, 0, 10)),
            top_products=_products(await DashboardRepository.top_products(db, 10)),
            recent_users=[UserResponse.model_validate(u) for u in await DashboardRepository.recent_users(db, 0, 10)],
        )

    @staticmethod
    async def admin_users(db: AsyncSession, page: int, per_page: int) -> list[UserResponse]:
        users = await DashboardRepository.recent_users(db, (page - 1) * per_page, per_page)
        return [UserResponse.model_validate(u) for u in users]

    @staticmethod
    async def admin_orders(db: AsyncSession, page: int, per_page: int) -> list[OrderResponse]:
        return _orders(await DashboardRepository.recent_orders(db, (page - 1) * per_page, per_page))
