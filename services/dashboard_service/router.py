from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import DEFAULT_PAGE_SIZE
from shared.security import CurrentUser, Role, require_roles
from services.auth_service.schemas import UserResponse
from services.order_service.schemas import OrderPage, OrderResponse
from services.order_service.service import OrderService
from services.product_service.schemas import ProductResponse

from .schemas import (
    AdminDashboard,
    BuyerDashboard,
    DriverDashboard,
    DriverProfileCreate,
    DriverProfileResponse,
    ShopDashboard,
    TechnicianDashboard,
    TechnicianProfileCreate,
    TechnicianProfileResponse,
)
from .service import DashboardService

buyer_router = APIRouter(prefix="/buyer", tags=["Dashboards"])
shop_router = APIRouter(prefix="/shop", tags=["Dashboards"])
driver_router = APIRouter(prefix="/driver", tags=["Dashboards"])
technician_router = APIRouter(prefix="/technician", tags=["Dashboards"])
admin_router = APIRouter(prefix="/admin", tags=["Dashboards"], dependencies=[Depends(require_roles(Role.ADMIN))])

driver_only = require_roles(Role.DRIVER)
technician_only = require_roles(Role.TECHNICIAN)


def _page(page: int = Query(default=1, ge=1), per_page: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100)):
    return page, per_page


@buyer_router.get("/dashboard", response_model=BuyerDashboard)
async def buyer_dashboard(user: CurrentUser = Depends(require_roles(Role.BUYER)), db: AsyncSession = Depends(get_db)):
    return await DashboardService.buyer(db, user.id)


@buyer_router.get("/orders", response_model=OrderPage)
async def buyer_orders(
    paging: tuple[int, int] = Depends(_page),
    user: CurrentUser = Depends(require_roles(Role.BUYER)),
    db: AsyncSession = Depends(get_db),
):
    page, per_page = paging
    orders, total = await OrderService.list_orders(db, user.id, page, per_page)
    return OrderPage(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        per_page=per_page,
    )


@shop_router.get("/dashboard", response_model=ShopDashboard)
async def shop_dashboard(user: CurrentUser = Depends(require_roles(Role.SHOP)), db: AsyncSession = Depends(get_db)):
    return await DashboardService.shop(db, user.id)


@shop_router.get("/products", response_model=list[ProductResponse])
async def shop_products(
    paging: tuple[int, int] = Depends(_page),
    user: CurrentUser = Depends(require_roles(Role.SHOP)),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.shop_products(db, user.id, *paging)


@shop_router.get("/orders", response_model=list[OrderResponse])
async def shop_orders(
    paging: tuple[int, int] = Depends(_page),
    user: CurrentUser = Depends(require_roles(Role.SHOP)),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.shop_orders(db, user.id, *paging)


@driver_router.post("/setup", response_model=DriverProfileResponse, status_code=status.HTTP_201_CREATED)
async def driver_setup(
    payload: DriverProfileCreate,
    user: CurrentUser = Depends(driver_only),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.setup_driver(db, user.id, payload)


@driver_router.get("/dashboard", response_model=DriverDashboard)
async def driver_dashboard(user: CurrentUser = Depends(driver_only), db: AsyncSession = Depends(get_db)):
    return await DashboardService.driver(db, user.id)


@technician_router.post("/setup", response_model=TechnicianProfileResponse, status_code=status.HTTP_201_CREATED)
async def technician_setup(
    payload: TechnicianProfileCreate,
    user: CurrentUser = Depends(technician_only),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.setup_technician(db, user.id, payload)


@technician_router.get("/dashboard", response_model=TechnicianDashboard)
async def technician_dashboard(user: CurrentUser = Depends(technician_only), db: AsyncSession = Depends(get_db)):
    return await DashboardService.technician(db, user.id)


@admin_router.get("/dashboard", response_model=AdminDashboard)
async def admin_dashboard(db: AsyncSession = Depends(get_db)):
    return await DashboardService.admin(db)


@admin_router.get("/users", response_model=list[UserResponse])
async def admin_users(paging: tuple[int, int] = Depends(_page), db: AsyncSession = Depends(get_db)):
    return await DashboardService.admin_users(db, *paging)


@admin_router.get("/orders", response_model=list[OrderResponse])
async def admin_orders(paging: tuple[int, int] = Depends(_page), db: AsyncSession = Depends(get_db)):
    return await DashboardService.admin_orders(db, *paging)
