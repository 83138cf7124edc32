from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core.clock import as_naive_utc
from .models import DiscountType, UserRole

T = TypeVar("T")


# --- Pagination ---

class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "PageMeta":
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=(total + limit - 1) // limit if limit else 0,
            has_next_page=page * limit < total,
            has_prev_page=page > 1,
        )


class Page(BaseModel, Generic[T]):
    data: List[T]
    meta: PageMeta


class MessageResponse(BaseModel):
    message: str
    success: bool


# --- Users ---

class User(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    email_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


# --- Auth ---

class RegisterRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class AuthResponse(BaseModel):
    user: User
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class Token(BaseModel):
    access_token: str
    token_type: str


class EmailRequest(BaseModel):
    email: str


class VerifyOtpRequest(BaseModel):
    email: str
    otp: str = Field(..., min_length=6, max_length=6)


class OtpVerificationResponse(MessageResponse):
    reset_token: Optional[str] = None
    expires_at: Optional[datetime] = None


class ResetPasswordRequest(BaseModel):
    reset_token: str
    password: str
    confirm_password: str


class ValidateResetTokenRequest(BaseModel):
    reset_token: str


class CleanupResult(BaseModel):
    deleted: int


class BlacklistStats(BaseModel):
    total_tokens: int
    expired_tokens: int
    active_tokens: int


# --- Categories ---

class CategoryCreate(BaseModel):
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class Category(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Products ---

class ProductCreate(BaseModel):
    name: str
    slug: str
    description: str
    base_price: Decimal
    category_id: int
    sku: str
    images: List[str] = []
    metadata: Optional[dict[str, Any]] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[Decimal] = None
    category_id: Optional[int] = None
    sku: Optional[str] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None
    metadata: Optional[dict[str, Any]] = None


class AppliedDiscount(BaseModel):
    id: int
    name: str
    discount_type: DiscountType
    value: Decimal


class Product(BaseModel):
    """
    Product as served to clients.

    `final_price` and `applied_discounts` are only present when a discount
    applies; read endpoints drop unset fields from the response.
    """
    id: int
    name: str
    slug: str
    description: str
    base_price: Decimal
    category_id: int
    sku: str
    images: List[str] = []
    is_active: bool
    metadata: Optional[dict[str, Any]] = None
    final_price: Optional[Decimal] = None
    applied_discounts: Optional[List[AppliedDiscount]] = None
    created_at: datetime
    updated_at: datetime


class ProductItemCreate(BaseModel):
    sku: str
    price: Decimal
    quantity_in_stock: int = 0
    attributes: dict[str, str] = {}
    images: List[str] = []


class ProductItem(BaseModel):
    id: int
    product_id: int
    sku: str
    price: Decimal
    quantity_in_stock: int
    attributes: dict[str, str]
    images: List[str]
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# --- Discounts ---

class _DiscountDates(BaseModel):
    @field_validator("start_date", "end_date", mode="after", check_fields=False)
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value) if value is not None else None


class DiscountCreate(_DiscountDates):
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    minimum_order_value: Optional[Decimal] = None
    minimum_quantity: Optional[int] = None
    max_usage_count: Optional[int] = None


class DiscountUpdate(_DiscountDates):
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    value: Optional[Decimal] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None
    minimum_order_value: Optional[Decimal] = None
    minimum_quantity: Optional[int] = None
    max_usage_count: Optional[int] = None


class Discount(BaseModel):
    id: int
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal
    start_date: datetime
    end_date: datetime
    is_active: bool
    minimum_order_value: Optional[Decimal] = None
    minimum_quantity: Optional[int] = None
    max_usage_count: Optional[int] = None
    usage_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LinkDiscountRequest(BaseModel):
    product_id: int
    discount_id: int
    product_item_id: Optional[int] = None


class ProductDiscountLink(BaseModel):
    id: int
    product_id: int
    product_item_id: Optional[int] = None
    discount_id: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
