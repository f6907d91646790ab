"""
Database Schemas for the SneakPeak store

Each Pydantic model represents a collection in MongoDB.
Collection name is the lowercase of the class name.
Request-only models (…Create, …Update) validate API payloads.
"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, EmailStr

Role = Literal["user", "admin"]
OrderStatus = Literal["Processing", "Shipped", "Delivered"]

# ---------- Users ----------

class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password_hash: str = Field(..., description="Hashed password")
    avatar_url: Optional[str] = Field(None)
    role: Role = "user"
    is_active: bool = Field(True)

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    avatar_url: Optional[str] = None

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    avatar_url: Optional[str] = None

class PasswordChange(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=6)

class PasswordResetRequest(BaseModel):
    email: EmailStr

class PasswordReset(BaseModel):
    password: str = Field(..., min_length=6)

class RoleUpdate(BaseModel):
    role: Role

class BulkUserAction(BaseModel):
    user_ids: List[str]
    action: Literal["delete", "activate", "deactivate"]

# ---------- Categories ----------

class Category(BaseModel):
    name: str = Field(..., max_length=50)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    deleted_at: Optional[datetime] = None

class CategoryCreate(BaseModel):
    name: str = Field(..., max_length=50)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None

class CategoryBulkUpdate(BaseModel):
    category_ids: List[str]
    updates: CategoryUpdate

# ---------- Products ----------

class Review(BaseModel):
    user_id: str
    name: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""

class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

class Product(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category: Optional[str] = Field(None, description="Category id")
    images: List[str] = Field(default_factory=list, description="Image references")
    reviews: List[Review] = Field(default_factory=list)
    ratings: float = 0.0
    num_of_reviews: int = 0
    revision: int = 0

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category: Optional[str] = None
    images: List[str] = Field(default_factory=list)

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    images: Optional[List[str]] = None

# ---------- Orders ----------

class OrderItem(BaseModel):
    product: str = Field(..., description="Product id")
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image: Optional[str] = None

class ShippingInfo(BaseModel):
    address: str
    city: str
    phone_no: str
    postal_code: str
    country: str

class PaymentInfo(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None

class OrderCreate(BaseModel):
    order_items: List[OrderItem] = Field(..., min_length=1)
    shipping_info: ShippingInfo
    items_price: float = Field(..., ge=0)
    tax_price: float = Field(0.0, ge=0)
    shipping_price: float = Field(0.0, ge=0)
    total_price: float = Field(..., ge=0)
    payment_info: Optional[PaymentInfo] = None

class Order(OrderCreate):
    user_id: str
    order_status: OrderStatus = "Processing"
    paid_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    stock_applied: bool = False

class OrderStatusUpdate(BaseModel):
    status: OrderStatus
