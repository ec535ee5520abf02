"""
Database Schemas

Pydantic models for every MongoDB collection used by the dashboard API.
Each entity has an *In* model (create payload), an *Update* model (partial
patch, every field optional but still constrained) and an *Out* model
(response shape). Collection name is the lowercase of the entity name:
- Product -> "product" collection
- OrderItem -> "orderitem" collection

Field names travel as camelCase on the wire and in the store.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["admin", "manager", "staff"]
ProductStatus = Literal["active", "discontinued"]
OrderStatus = Literal["pending", "processing", "completed", "cancelled"]
OrderType = Literal["sale", "purchase"]
EmployeeStatus = Literal["active", "on_leave", "terminated"]
TransactionType = Literal["income", "expense", "transfer"]

DEFAULT_ROLE = "staff"


def normalize_email(value):
    # Emails are stored and looked up lowercased so login matches registration
    if isinstance(value, str):
        return value.strip().lower()
    return value


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StoredModel(CamelModel):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# -----------------------------
# Auth / User
# -----------------------------
class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value):
        return normalize_email(value)


class LoginRequest(CamelModel):
    # Plain str: a malformed email must fail like any other bad login
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value):
        return normalize_email(value)


class UserOut(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role = DEFAULT_ROLE


class AuthResponse(UserOut):
    token: str


class MessageResponse(BaseModel):
    message: str


# -----------------------------
# Inventory
# -----------------------------
class ProductIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    sku: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., gt=0)
    stock: int = Field(0, ge=0)
    status: ProductStatus = "active"


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[float] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None


class ProductOut(StoredModel):
    name: str
    description: Optional[str] = None
    sku: str
    category: str
    price: float
    stock: int = 0
    status: ProductStatus = "active"


# -----------------------------
# Sales & Purchases
# -----------------------------
class OrderItemIn(CamelModel):
    product_id: str
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., gt=0)
    total_price: Optional[float] = Field(None, gt=0)


class OrderItemOut(StoredModel):
    order_id: str
    product_id: str
    quantity: int
    unit_price: float
    total_price: float


class OrderIn(CamelModel):
    order_number: str = Field(..., min_length=1, max_length=50)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    total_amount: float = Field(..., gt=0)
    status: OrderStatus = "pending"
    type: OrderType = "sale"
    items: Optional[List[OrderItemIn]] = None

    # The order form sends "" when no customer email was entered
    @field_validator("customer_email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        return blank_to_none(value)


class OrderUpdate(CamelModel):
    order_number: Optional[str] = Field(None, min_length=1, max_length=50)
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    total_amount: Optional[float] = Field(None, gt=0)
    status: Optional[OrderStatus] = None
    type: Optional[OrderType] = None

    @field_validator("customer_email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        return blank_to_none(value)


class OrderOut(StoredModel):
    order_number: str
    customer_name: str
    customer_email: Optional[str] = None
    total_amount: float
    status: OrderStatus = "pending"
    type: OrderType = "sale"


# -----------------------------
# Human Resources
# -----------------------------
class EmployeeIn(CamelModel):
    employee_id: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    position: str = Field(..., min_length=1, max_length=255)
    department: str = Field(..., min_length=1, max_length=100)
    salary: Optional[float] = Field(None, ge=0)
    hire_date: datetime
    status: EmployeeStatus = "active"


class EmployeeUpdate(CamelModel):
    employee_id: Optional[str] = Field(None, min_length=1, max_length=50)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    position: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    salary: Optional[float] = Field(None, ge=0)
    hire_date: Optional[datetime] = None
    status: Optional[EmployeeStatus] = None


class EmployeeOut(StoredModel):
    employee_id: str
    first_name: str
    last_name: str
    email: str
    position: str
    department: str
    salary: Optional[float] = None
    hire_date: datetime
    status: EmployeeStatus = "active"


# -----------------------------
# Finance
# -----------------------------
class TransactionIn(CamelModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount: float = Field(..., gt=0)
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    date: datetime


class TransactionUpdate(CamelModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[float] = Field(None, gt=0)
    type: Optional[TransactionType] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[datetime] = None


class TransactionOut(StoredModel):
    description: str
    amount: float
    type: TransactionType
    category: str
    date: datetime


# -----------------------------
# Dashboard
# -----------------------------
class DashboardKPIs(CamelModel):
    total_revenue: float
    active_orders: int
    inventory_items: int
    employees: int
