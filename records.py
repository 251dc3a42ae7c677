"""
Record access for the six shop collections.

Every function takes the database handle first and returns JSON-ready
documents (ObjectIds as strings, datetimes as ISO-8601). Failures are raised
as the RecordError subclasses below; request handlers decide how each one is
reported to the client.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import create_document, get_documents
from schemas import Address, Contact, Feedback, Order, Product, User

PUBLIC_USER_FIELDS = ("_id", "firstName", "lastName", "email", "image")
ORDER_USER_FIELDS = {"firstName": 1, "lastName": 1, "email": 1}
ORDER_PRODUCT_FIELDS = {"name": 1, "price": 1}


class RecordError(Exception):
    pass


class DuplicateError(RecordError):
    pass


class PreconditionFailed(RecordError):
    pass


class ValidationError(RecordError):
    pass


class NotFound(RecordError):
    pass


class StoreError(RecordError):
    pass


# ---------------------------
# Helpers
# ---------------------------
@contextmanager
def store_errors(db):
    """Reject a missing database and turn driver failures into StoreError."""
    if db is None:
        raise StoreError("Database not available")
    try:
        yield
    except PyMongoError as exc:
        raise StoreError(str(exc)) from exc


def to_public(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        # Stored times are UTC; a naive value comes from a client without tz_aware
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_public(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_public(v) for v in value]
    return value


def _object_id(value: str) -> ObjectId:
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationError("Invalid id")


def _user_exists(db, email: str) -> bool:
    return db["user"].find_one({"email": email}, {"_id": 1}) is not None


# ---------------------------
# User
# ---------------------------
def create_user(db, user: User) -> str:
    # The unique index on user.email catches signups that race past the lookup
    with store_errors(db):
        if _user_exists(db, user.email):
            raise DuplicateError("Email is already registered")
        try:
            return create_document(db, "user", user)
        except DuplicateKeyError:
            raise DuplicateError("Email is already registered")


def find_user_by_email(db, email: str) -> Dict[str, Any]:
    """Return the user's public fields; the password never leaves this layer."""
    with store_errors(db):
        user = db["user"].find_one({"email": email})
    if user is None:
        raise NotFound("Email not found")
    return to_public({k: user.get(k) for k in PUBLIC_USER_FIELDS})


def list_users(db) -> List[Dict[str, Any]]:
    with store_errors(db):
        users = list(db["user"].find({}, {"password": 0, "confirmPassword": 0}))
    return to_public(users)


# ---------------------------
# Product
# ---------------------------
def create_product(db, product: Product) -> str:
    with store_errors(db):
        return create_document(db, "product", product)


def list_products(db) -> List[Dict[str, Any]]:
    with store_errors(db):
        return to_public(get_documents(db, "product"))


# ---------------------------
# Contact
# ---------------------------
def create_contact(db, contact: Contact) -> str:
    with store_errors(db):
        if not _user_exists(db, contact.email):
            raise PreconditionFailed("User not found")
        return create_document(db, "contact", contact)


def list_contacts(db) -> List[Dict[str, Any]]:
    with store_errors(db):
        return to_public(get_documents(db, "contact"))


# ---------------------------
# Address
# ---------------------------
def create_address(db, address: Address) -> str:
    with store_errors(db):
        if not _user_exists(db, address.email):
            raise PreconditionFailed("User not found")
        return create_document(db, "address", address)


def find_address_by_email(db, email: str) -> Dict[str, Any]:
    # Several addresses may share an email; the first one the store returns wins
    with store_errors(db):
        address = db["address"].find_one({"email": email})
    if address is None:
        raise NotFound("Address not found")
    return to_public(address)


def list_addresses(db) -> List[Dict[str, Any]]:
    with store_errors(db):
        return to_public(get_documents(db, "address"))


# ---------------------------
# Order
# ---------------------------
def create_order(db, user_id, cart_items, total_amount) -> str:
    """
    Persist an order for `user_id`.

    Only presence is checked: the user and products are not looked up, and
    prices are stored as the caller sent them.
    """
    if not user_id or not cart_items or not total_amount:
        raise ValidationError("Missing fields")

    order = Order(userId=user_id, cartItems=cart_items, totalAmount=total_amount)
    doc = order.model_dump()
    doc["userId"] = _object_id(order.userId)
    for item in doc["cartItems"]:
        item["productId"] = _object_id(item["productId"])

    with store_errors(db):
        return create_document(db, "order", doc)


def list_orders_with_relations(db) -> List[Dict[str, Any]]:
    """
    List every order with its user and products resolved.

    `userId` becomes {_id, firstName, lastName, email} and each item's
    `productId` becomes {_id, name, price}. A reference to a record that no
    longer exists resolves to None.
    """
    with store_errors(db):
        orders = get_documents(db, "order")
        user_ids = {o["userId"] for o in orders if o.get("userId")}
        product_ids = {
            item["productId"]
            for o in orders
            for item in o.get("cartItems", [])
            if item.get("productId")
        }
        users = {
            u["_id"]: u
            for u in db["user"].find({"_id": {"$in": list(user_ids)}}, ORDER_USER_FIELDS)
        }
        products = {
            p["_id"]: p
            for p in db["product"].find({"_id": {"$in": list(product_ids)}}, ORDER_PRODUCT_FIELDS)
        }

    for o in orders:
        o["userId"] = users.get(o.get("userId"))
        for item in o.get("cartItems", []):
            item["productId"] = products.get(item.get("productId"))
    return to_public(orders)


# ---------------------------
# Feedback
# ---------------------------
def create_feedback(db, feedback: Feedback) -> str:
    with store_errors(db):
        return create_document(db, "feedback", feedback)
