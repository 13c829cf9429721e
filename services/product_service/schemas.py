from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from shared.config.settings import DEFAULT_PAGE_SIZE


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_id: Optional[int] = None
    sort_order: int = 0


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str
    parent_id: Optional[int]

    class Config:
        from_attributes = True


class CategoryResponse(CategorySummary):
    children: List[CategorySummary] = []

    class Config:
        from_attributes = True


class ShopSummary(BaseModel):
    id: int
    name: str
    slug: str

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    sku: str = Field(min_length=1, max_length=64)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(ge=0)
    category_id: Optional[int] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    sku: Optional[str] = Field(default=None, min_length=1, max_length=64)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    is_active: Optional[bool] = None

    # Omit a field to leave it unchanged; only description and category_id may be cleared
    @field_validator("name", "sku", "price", "stock", "is_active")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class ProductResponse(BaseModel):
    id: int
    shop_id: int
    category_id: Optional[int]
    name: str
    slug: str
    description: Optional[str]
    sku: str
    price: float
    stock: int
    is_active: bool
    view_count: int

    class Config:
        from_attributes = True


class ProductDetailResponse(ProductResponse):
    shop: Optional[ShopSummary] = None
    category: Optional[CategorySummary] = None
    related: List[ProductResponse] = []
    is_favorited: bool = False


class ProductPage(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    per_page: int


class ProductFilters(BaseModel):
    q: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)
    in_stock: bool = False
    sort: Literal["newest", "price_low", "price_high", "popular"] = "newest"
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=100)

    @model_validator(mode="after")
    def price_range(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class ShopCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    city: Optional[str] = Field(default=None, max_length=255)


class ShopResponse(BaseModel):
    id: int
    user_id: int
    name: str
    slug: str
    description: Optional[str]
    phone: Optional[str]
    city: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True
