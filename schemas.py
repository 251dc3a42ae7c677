"""
Database Schemas

MongoDB collection schemas for the shop, defined as Pydantic models.
These schemas are used for data validation in the application.

Each Pydantic model represents a collection in the database.
Model name is converted to lowercase for the collection name:
- User -> "user" collection
- Product -> "product" collection
- Order -> "order" collection

Field names follow the JSON the storefront sends (camelCase).
"""

from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_text(v: Any) -> Any:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


# Numbers sent for text fields (price, rating, phone) are kept as their string form
Text = Annotated[Optional[str], BeforeValidator(_as_text)]

OrderStatus = Literal["Pending", "Processing", "Shipped", "Delivered", "Cancelled"]


class User(BaseModel):
    """
    Users collection schema
    Collection name: "user"
    """
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: str = Field(..., description="Unique across all users")
    password: Optional[str] = Field(None, description="Stored as given, not hashed")
    confirmPassword: Optional[str] = None
    image: Optional[str] = Field(None, description="Image reference (URL or data URI)")


class Product(BaseModel):
    """
    Products collection schema
    Collection name: "product"
    """
    name: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    price: Text = Field(None, description="Price as entered, string-typed")
    description: Optional[str] = None


class Contact(BaseModel):
    """
    Contact submissions
    Collection name: "contact"
    """
    name: Optional[str] = None
    email: str
    phone: Text = None
    message: Optional[str] = None
    date: datetime = Field(default_factory=_utcnow)


class Address(BaseModel):
    """
    Shipping addresses
    Collection name: "address"
    """
    name: Optional[str] = None
    email: str
    phone: Text = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postalCode: Text = None
    date: datetime = Field(default_factory=_utcnow)


class OrderItem(BaseModel):
    productId: str = Field(..., description="Product ObjectId as string")
    qty: int = Field(..., ge=1)
    price: float = Field(..., description="Unit price copied at order time")


class Order(BaseModel):
    """
    Orders collection schema
    Collection name: "order"
    """
    userId: str = Field(..., description="User ObjectId as string")
    cartItems: List[OrderItem]
    totalAmount: float
    orderDate: datetime = Field(default_factory=_utcnow)
    orderStatus: OrderStatus = "Pending"


class Feedback(BaseModel):
    """
    Product reviews
    Collection name: "feedback"
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Text = None
    productName: Optional[str] = Field(None, description="Free text, not a product reference")
    rating: Text = None
    comment: Optional[str] = None
    date: datetime = Field(default_factory=_utcnow)


# ---------------------------
# Request bodies
# ---------------------------
class LoginIn(BaseModel):
    email: str
    password: Optional[str] = None


class ContactIn(BaseModel):
    name: Optional[str] = None
    email: str
    phone: Text = None
    message: Optional[str] = None


class AddressIn(BaseModel):
    name: Optional[str] = None
    email: str
    phone: Text = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postalCode: Text = None


class OrderIn(BaseModel):
    # Presence is checked by the handler so a missing field answers 400, not 422
    userId: Optional[str] = None
    cartItems: Optional[List[OrderItem]] = None
    totalAmount: Optional[float] = None


class CheckoutItem(BaseModel):
    name: str
    price: float = Field(..., description="Unit price in rupees")
    qty: int = Field(1, ge=1)


class FeedbackIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Text = None
    productName: Optional[str] = None
    rating: Text = None
    comment: Optional[str] = None
