from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1, le=100)
    notes: Optional[str] = Field(default=None, max_length=500)


class CartQuantityUpdate(BaseModel):
    cart_id: int
    quantity: int = Field(ge=1, le=100)


class CartLineRef(BaseModel):
    cart_id: int


class CartProduct(BaseModel):
    id: int
    name: str
    slug: str
    price: float
    stock: int

    class Config:
        from_attributes = True


class CartLineResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: float
    line_total: float
    notes: Optional[str]
    product: Optional[CartProduct] = None

    class Config:
        from_attributes = True


class CartViolation(BaseModel):
    line_id: int
    product_id: int
    product_name: Optional[str]
    kind: Literal["unavailable", "insufficient_stock", "price_changed"]
    message: str


class CartResponse(BaseModel):
    success: bool = True
    items: List[CartLineResponse]
    cart_total: float
    cart_count: int


class CartInfoResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    cart_total: Optional[float] = None
    cart_count: int


class CartValidationResponse(BaseModel):
    success: bool
    is_valid: bool
    errors: List[str]
    violations: List[CartViolation]
