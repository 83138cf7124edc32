# app/models.py

import enum
from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .core.clock import utcnow
from .database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


# --- Identity ---

class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    refresh_token = Column(String(1024))
    last_login_at = Column(DateTime)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class TokenBlacklist(TimestampMixin, Base):
    __tablename__ = "token_blacklist"

    id = Column(Integer, primary_key=True)
    token = Column(String(1024), unique=True, index=True, nullable=False)
    user_id = Column(Integer, index=True, nullable=False)
    expires_at = Column(DateTime, index=True, nullable=False)
    reason = Column(String(255))
    blacklisted_at = Column(DateTime, nullable=False, default=utcnow)


class PasswordReset(TimestampMixin, Base):
    __tablename__ = "password_resets"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    token = Column(String(128), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime)
    ip_address = Column(String(64))
    user_agent = Column(String(512))


# --- Catalog ---

class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    products = relationship("Product", back_populates="category")


class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    base_price = Column(Numeric(12, 2), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    sku = Column(String(100), unique=True, index=True, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    # `metadata` is reserved by the declarative base
    extra_data = Column("metadata", JSON)

    category = relationship("Category", back_populates="products")
    items = relationship("ProductItem", back_populates="product")


class ProductItem(TimestampMixin, Base):
    __tablename__ = "product_items"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    sku = Column(String(100), unique=True, index=True, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    attributes = Column(JSON, nullable=False, default=dict)
    images = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)

    product = relationship("Product", back_populates="items")


# --- Pricing ---

class Discount(TimestampMixin, Base):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    discount_type = Column(Enum(DiscountType), nullable=False, index=True)
    value = Column(Numeric(12, 2), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    minimum_order_value = Column(Numeric(12, 2))
    minimum_quantity = Column(Integer)
    max_usage_count = Column(Integer)
    usage_count = Column(Integer, nullable=False, default=0)


class ProductDiscount(TimestampMixin, Base):
    """Many-to-many link between a product (optionally one of its items) and a discount."""
    __tablename__ = "product_discounts"
    __table_args__ = (
        UniqueConstraint("product_id", "discount_id", name="uq_product_discount"),
    )

    id = Column(Integer, primary_key=True)
    # no foreign keys: links may outlive the records they point to
    product_id = Column(Integer, nullable=False, index=True)
    product_item_id = Column(Integer, index=True)
    discount_id = Column(Integer, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
