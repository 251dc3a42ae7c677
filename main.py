import logging
import os
from typing import List

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

import records
from database import close_client, ensure_indexes, get_db
from payments import GatewayError, create_checkout_session
from records import DuplicateError, NotFound, PreconditionFailed, StoreError, ValidationError
from schemas import (
    Address,
    AddressIn,
    CheckoutItem,
    Contact,
    ContactIn,
    Feedback,
    FeedbackIn,
    LoginIn,
    OrderIn,
    Product,
    User,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Shop Backend API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, key: str = "message") -> JSONResponse:
    return JSONResponse(status_code=status_code, content={key: message})


@app.on_event("startup")
def on_startup():
    ensure_indexes(get_db())


@app.on_event("shutdown")
def on_shutdown():
    close_client()


@app.get("/", response_class=PlainTextResponse)
def read_root():
    return "Server is running"


@app.get("/test")
def test_database(db=Depends(get_db)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    if db is None:
        return response
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except Exception as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:80]}"
    return response


# --- Users ---

@app.post("/signup")
def signup(body: User, db=Depends(get_db)):
    try:
        records.create_user(db, body)
    except DuplicateError as e:
        return {"message": str(e), "alert": False}
    except StoreError:
        logger.exception("Signup failed for %s", body.email)
        return _error(500, "An error occurred")
    return {"message": "Registration successful", "alert": True}


@app.post("/login")
def login(body: LoginIn, db=Depends(get_db)):
    # TODO: compare body.password once stored passwords are hashed
    try:
        data = records.find_user_by_email(db, body.email)
    except NotFound as e:
        return {"message": str(e), "alert": False}
    except StoreError:
        logger.exception("Login lookup failed")
        return _error(500, "An error occurred")
    return {"message": "Login successful", "alert": True, "data": data}


@app.get("/allusers")
def all_users(db=Depends(get_db)):
    try:
        users = records.list_users(db)
    except StoreError:
        logger.exception("Fetching users failed")
        return _error(500, "Error fetching users")
    return {"message": "Users fetched", "alert": True, "data": users}


# --- Catalog ---

@app.post("/uploadProduct")
def upload_product(body: Product, db=Depends(get_db)):
    try:
        records.create_product(db, body)
    except StoreError:
        logger.exception("Product upload failed")
        return _error(500, "Error uploading product")
    return {"message": "Product uploaded successfully"}


@app.get("/product")
def get_products(db=Depends(get_db)):
    try:
        return records.list_products(db)
    except StoreError:
        logger.exception("Fetching products failed")
        return _error(500, "Error retrieving products")


# --- Contact ---

@app.post("/contact", status_code=201)
def submit_contact(body: ContactIn, db=Depends(get_db)):
    try:
        records.create_contact(db, Contact(**body.model_dump()))
    except PreconditionFailed as e:
        return _error(400, str(e))
    except StoreError:
        logger.exception("Contact submission failed")
        return _error(500, "Server error")
    return {"message": "Contact submitted successfully"}


@app.get("/allcontacts")
def all_contacts(db=Depends(get_db)):
    try:
        contacts = records.list_contacts(db)
    except StoreError:
        logger.exception("Fetching contacts failed")
        return _error(500, "Error fetching data")
    return {"message": "Data fetched", "alert": True, "data": contacts}


# --- Checkout with Stripe ---

@app.post("/create-checkout-session")
def checkout_session(items: List[CheckoutItem]):
    try:
        session_id = create_checkout_session(items)
    except GatewayError as e:
        return JSONResponse(status_code=e.status, content=e.message)
    return session_id


# --- Address ---

@app.post("/address", status_code=201)
def submit_address(body: AddressIn, db=Depends(get_db)):
    try:
        records.create_address(db, Address(**body.model_dump()))
    except PreconditionFailed as e:
        return _error(400, str(e))
    except StoreError:
        logger.exception("Address submission failed")
        return _error(500, "Server error")
    return {"message": "Address submitted"}


@app.get("/address")
def get_address(email: str = "", db=Depends(get_db)):
    try:
        return records.find_address_by_email(db, email)
    except NotFound as e:
        return _error(404, str(e))
    except StoreError:
        logger.exception("Address lookup failed")
        return _error(500, "Server error")


@app.get("/addresses")
def all_addresses(db=Depends(get_db)):
    try:
        return records.list_addresses(db)
    except StoreError:
        logger.exception("Fetching addresses failed")
        return _error(500, "Error fetching addresses")


# --- Orders ---

@app.post("/order", status_code=201)
def create_order(body: OrderIn, db=Depends(get_db)):
    try:
        order_id = records.create_order(db, body.userId, body.cartItems, body.totalAmount)
    except ValidationError as e:
        return _error(400, str(e))
    except StoreError:
        logger.exception("Order creation failed")
        return _error(500, "Order creation failed")
    logger.info("Order %s created for user %s", order_id, body.userId)
    return {"message": "Order created", "orderId": order_id}


@app.get("/orders")
def list_orders(db=Depends(get_db)):
    try:
        return records.list_orders_with_relations(db)
    except StoreError:
        logger.exception("Fetching orders failed")
        return _error(500, "Failed to fetch orders", key="error")


# --- Feedback ---

@app.post("/feedback", status_code=201)
def submit_feedback(body: FeedbackIn, db=Depends(get_db)):
    try:
        records.create_feedback(db, Feedback(**body.model_dump()))
    except StoreError:
        logger.exception("Feedback submission failed")
        return _error(500, "Server error")
    return {"message": "Feedback submitted"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
