import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import accounts
import catalog
import database
from errors import ShopError
from schemas import AddToCartRequest, RegisterRequest

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = database.connect()
    admin_client = database.connect_admin()
    app.state.db = database.shop_database(client)
    app.state.admin_db = database.admin_database(admin_client)
    try:
        database.ensure_indexes(app.state.db)
    except PyMongoError as e:
        logger.warning("Could not create indexes", error=str(e))
    logger.info("Database clients ready", database=app.state.db.name, admin_database=app.state.admin_db.name)
    try:
        yield
    finally:
        client.close()
        admin_client.close()
        logger.info("Database clients closed")


app = FastAPI(title="Bunny Shop API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Utilities

def get_db(request: Request) -> Database:
    return request.app.state.db


def get_admin_db(request: Request) -> Database:
    return request.app.state.admin_db


def ok(data):
    return {"success": True, "data": data}


def failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


# Error mapping

@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return failure(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return failure(500, "; ".join(messages) or "Invalid request")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return failure(exc.status_code, str(exc.detail))


@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logger.error("Unhandled error", path=request.url.path, error=str(e))
        return failure(500, str(e))


# Products

@app.get("/api/products")
def list_products(db: Database = Depends(get_db)):
    return ok(catalog.list_in_stock_products(db))


@app.get("/api/products/dynamic")
def dynamic_products(admin_db: Database = Depends(get_admin_db)):
    return ok(catalog.get_dynamic_product_feed(admin_db, database.admin_id()))


@app.get("/api/products/search/{query}")
def search_products(query: str, db: Database = Depends(get_db)):
    return ok(catalog.search_products(db, query))


@app.get("/api/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    return ok(catalog.get_product(db, product_id))


# Users, cart and orders

@app.post("/api/users/register")
def register_user(payload: RegisterRequest, db: Database = Depends(get_db)):
    return ok(accounts.register(db, payload))


@app.get("/api/users/{user_id}")
def get_user(user_id: str, db: Database = Depends(get_db)):
    return ok(accounts.get_user(db, user_id))


@app.post("/api/users/{user_id}/cart")
def add_to_cart(user_id: str, payload: AddToCartRequest, db: Database = Depends(get_db)):
    return ok(accounts.add_to_cart(db, user_id, payload))


@app.get("/api/users/{user_id}/cart")
def get_cart(user_id: str, db: Database = Depends(get_db)):
    return ok(accounts.get_cart(db, user_id))


@app.post("/api/users/{user_id}/orders")
def place_order(user_id: str, db: Database = Depends(get_db)):
    return ok(accounts.place_order(db, user_id))


@app.get("/api/users/{user_id}/orders")
def get_orders(user_id: str, db: Database = Depends(get_db)):
    return ok(accounts.get_orders(db, user_id))


# Store configuration

@app.get("/api/app-config")
def app_config(admin_db: Database = Depends(get_admin_db)):
    return ok(catalog.get_app_config(admin_db, database.admin_id()))


@app.get("/health")
def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
