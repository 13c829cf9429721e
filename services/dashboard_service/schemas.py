from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from services.auth_service.schemas import UserResponse
from services.order_service.schemas import OrderResponse
from services.product_service.schemas import ProductResponse, ShopResponse


class BuyerStats(BaseModel):
    total_orders: int
    pending_orders: int
    completed_orders: int
    total_favorites: int


class BuyerDashboard(BaseModel):
    stats: BuyerStats
    recent_orders: List[OrderResponse]
    favorite_products: List[ProductResponse]


class ShopStats(BaseModel):
    total_products: int
    total_orders: int
    pending_orders: int
    total_revenue: float


class ShopDashboard(BaseModel):
    shop: ShopResponse
    stats: ShopStats
    recent_orders: List[OrderResponse]
    top_products: List[ProductResponse]


class DriverProfileCreate(BaseModel):
    vehicle_type: Literal["car", "motorcycle", "van", "truck"]
    license_number: str = Field(min_length=1, max_length=50)


class DriverProfileResponse(BaseModel):
    id: int
    user_id: int
    vehicle_type: str
    license_number: str
    is_available: bool

    class Config:
        from_attributes = True


class DriverDashboard(BaseModel):
    profile: DriverProfileResponse
    deliveries_in_transit: int


class TechnicianProfileCreate(BaseModel):
    specialty: str = Field(min_length=1, max_length=255)
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class TechnicianProfileResponse(BaseModel):
    id: int
    user_id: int
    specialty: str
    hourly_rate: Optional[float]
    is_available: bool

    class Config:
        from_attributes = True


class TechnicianDashboard(BaseModel):
    profile: TechnicianProfileResponse


class AdminStats(BaseModel):
    total_users: int
    total_products: int
    total_orders: int
    total_shops: int
    total_drivers: int
    total_technicians: int


class AdminDashboard(BaseModel):
    stats: AdminStats
    recent_orders: List[OrderResponse]
    top_products: List[ProductResponse]
    recent_users: List[UserResponse]
