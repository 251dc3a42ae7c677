from datetime import datetime, timezone

import mongomock
import pytest
from pymongo.errors import ServerSelectionTimeoutError

import records
from records import DuplicateError, NotFound, PreconditionFailed, StoreError, ValidationError
from schemas import Address, Contact, Feedback, OrderItem, User


@pytest.fixture
def user(db):
    records.create_user(db, User(firstName="Asha", email="asha@example.com", password="secret"))
    return db["user"].find_one({"email": "asha@example.com"})


def test_duplicate_user(db, user):
    with pytest.raises(DuplicateError):
        records.create_user(db, User(email="asha@example.com"))


def test_find_user_projection(db, user):
    found = records.find_user_by_email(db, "asha@example.com")
    assert found["_id"] == str(user["_id"])
    assert "password" not in found


def test_find_user_missing(db):
    with pytest.raises(NotFound):
        records.find_user_by_email(db, "nobody@example.com")


def test_contact_precondition(db):
    with pytest.raises(PreconditionFailed):
        records.create_contact(db, Contact(email="nobody@example.com"))


def test_address_first_match(db, user):
    records.create_address(db, Address(email="asha@example.com", city="Pune"))
    records.create_address(db, Address(email="asha@example.com", city="Mumbai"))
    assert len(records.list_addresses(db)) == 2
    assert records.find_address_by_email(db, "asha@example.com")["city"] in ("Pune", "Mumbai")


def test_order_requires_fields(db):
    with pytest.raises(ValidationError):
        records.create_order(db, "", [OrderItem(productId="0" * 24, qty=1, price=1)], 1)
    with pytest.raises(ValidationError):
        records.create_order(db, "0" * 24, [], 1)


def test_order_stores_references(db, user):
    order_id = records.create_order(
        db, str(user["_id"]), [OrderItem(productId="0" * 24, qty=3, price=10)], 30,
    )
    stored = db["order"].find_one()
    assert str(stored["_id"]) == order_id
    assert stored["userId"] == user["_id"]
    assert stored["orderStatus"] == "Pending"
    assert stored["cartItems"][0]["qty"] == 3


def test_feedback_has_no_precondition(db):
    records.create_feedback(db, Feedback(email="nobody@example.com", productName="Mango", rating=4))
    saved = db["feedback"].find_one({"productName": "Mango"})
    assert saved["rating"] == "4"
    assert saved["date"]


def test_missing_database():
    with pytest.raises(StoreError):
        records.list_products(None)


def test_driver_failure_becomes_store_error(db, monkeypatch):
    def boom(*args, **kwargs):
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(mongomock.Collection, "find", boom)
    with pytest.raises(StoreError):
        records.list_contacts(db)


def test_unique_index_catches_racing_signup(db, monkeypatch):
    monkeypatch.setattr(records, "_user_exists", lambda db, email: False)
    records.create_user(db, User(email="asha@example.com"))
    with pytest.raises(DuplicateError):
        records.create_user(db, User(email="asha@example.com"))
    assert db["user"].count_documents({}) == 1


def test_times_serialize_as_utc():
    naive = datetime(2024, 5, 1, 10, 30)
    aware = datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
    assert records.to_public({"date": naive}) == {"date": "2024-05-01T10:30:00+00:00"}
    assert records.to_public([aware]) == ["2024-05-01T10:30:00+00:00"]
