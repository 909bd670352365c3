"""
Schemas for the storefront

Pydantic models shared by the client-side stores (storefront package) and the
table API. Client-side records are persisted as JSON via model_dump(mode="json")
and read back with model_validate.
"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, EmailStr

# Catalog

class Product(BaseModel):
    id: int
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    image_url: Optional[str] = None
    category: str
    stock: int = Field(0, ge=0)
    rating: float = Field(0, ge=0, le=5)

# Cart

class CartItem(BaseModel):
    product: Product
    quantity: int = Field(1, ge=1)

# Users

class Address(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str

class User(BaseModel):
    id: int = 0
    name: str
    email: EmailStr
    address: Optional[Address] = None
    phone: Optional[str] = None

# Orders

class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class OrderItem(BaseModel):
    product: Product
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0, description="Unit price at order time")

class ShippingInfo(BaseModel):
    full_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    phone: str = ""

class OrderCreate(BaseModel):
    user_id: int
    items: List[OrderItem]
    total: float = Field(..., ge=0)
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: Optional[ShippingInfo] = None

class Order(OrderCreate):
    id: int
    created_at: datetime

# API envelope

class ApiResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None
    count: Optional[int] = None
