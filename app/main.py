### restaurant-api/app/main.py
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import configure_mappers

import app.models  # registers all models via models/__init__.py
from app.api import (
    address_routes,
    cart_routes,
    category_routes,
    order_routes,
    product_routes,
    reservation_routes,
    table_routes,
    user_routes,
    webhook_routes,
)
from app.core.config import settings
from app.core.constants import BASE_STATIC_PATH
from app.core.errors import register_exception_handlers
from app.db import async_session, create_db_and_tables
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.utils.admin import seed_default_admin

configure_mappers()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
log = logging.getLogger(__name__)

STATIC_DIR = os.path.abspath(BASE_STATIC_PATH)
os.makedirs(STATIC_DIR, exist_ok=True)

# Create the FastAPI app
app = FastAPI(title=settings.app_name)

register_exception_handlers(app)

app.add_middleware(SecurityHeadersMiddleware)

# ✅ Allow frontend (CORS); credentials are needed for the auth cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ Mount static files (local product uploads)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


# ✅ Swagger Bearer token support for "Authorize" button
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=settings.app_name,
        version="1.0.0",
        description="Restaurant catalog, cart, checkout and table reservations.",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    for path in openapi_schema["paths"].values():
        for operation in path.values():
            operation["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


@app.on_event("startup")
async def on_startup():
    log.info("starting DB setup")
    await create_db_and_tables()
    async with async_session() as db:
        await seed_default_admin(db, settings.admin_email, settings.admin_password)


@app.get("/")
async def home():
    return {"success": True, "message": f"{settings.app_name} is running"}


# ✅ Core app routers
API = settings.api_prefix
app.include_router(user_routes.router, prefix=f"{API}/user", tags=["user"])
app.include_router(category_routes.router, prefix=f"{API}/category", tags=["category"])
app.include_router(product_routes.router, prefix=f"{API}/product", tags=["product"])
app.include_router(cart_routes.router, prefix=f"{API}/cart", tags=["cart"])
app.include_router(address_routes.router, prefix=f"{API}/address", tags=["address"])
app.include_router(order_routes.router, prefix=f"{API}/order", tags=["order"])
app.include_router(webhook_routes.router, prefix=f"{API}/webhook", tags=["webhook"])
app.include_router(table_routes.router, prefix=f"{API}/table", tags=["table"])
app.include_router(reservation_routes.router, prefix=f"{API}/reservation", tags=["reservation"])
