from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from services.cart_service.schemas import CartLineResponse


class CheckoutRequest(BaseModel):
    shipping_address: str = Field(min_length=1, max_length=500)
    payment_method: Literal["cash", "card", "bank_transfer"]
    phone: str = Field(min_length=1, max_length=20)
    notes: Optional[str] = Field(default=None, max_length=1000)


class OrderLineResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    line_total: float
    notes: Optional[str]

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    user_id: int
    shipping_address: str
    phone: str
    payment_method: str
    notes: Optional[str]
    status: str
    total_amount: float
    created_at: Optional[datetime] = None
    lines: List[OrderLineResponse] = []

    class Config:
        from_attributes = True


class OrderPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    per_page: int


class CheckoutSummary(BaseModel):
    success: bool = True
    items: List[CartLineResponse]
    cart_total: float
    cart_count: int


class CheckoutResult(BaseModel):
    success: bool = True
    message: str
    order: OrderResponse


class OrderStatusUpdate(BaseModel):
    status: Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
