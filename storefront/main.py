import logging

from fastapi import FastAPI
from storefront.database import create_db_and_tables
from storefront.config import settings
from storefront.routes import (
    admin_coupons,
    admin_dashboard,
    admin_orders,
    admin_settings,
    cart,
    checkout,
    coupons,
    health,
    public_settings,
    user_orders,
)

from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    logger.info(f"Storefront API started ({settings.ENV})")
    yield

app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(coupons.router, prefix="/coupons", tags=["Coupons"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(user_orders.router, prefix="/orders", tags=["Orders"])
app.include_router(public_settings.router, prefix="/settings", tags=["Public Settings"])
app.include_router(admin_coupons.router, prefix="/admin/coupons", tags=["Admin Coupons"])
app.include_router(admin_dashboard.router, prefix="/admin/dashboard", tags=["Admin Dashboard"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(admin_settings.router, prefix="/admin/settings", tags=["Admin Settings"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "cart_endpoints": ["/cart/quote", "/coupons/validate"],
        "checkout_endpoints": ["/checkout/place-order"],
        "order_endpoints": ["/orders/my", "/orders/{order_id}"],
        "public_settings": ["/settings/shipping"],
        "admin_endpoints": [
            "/admin/dashboard/stats", "/admin/dashboard/recent-orders", "/admin/dashboard/best-sellers",
            "/admin/coupons", "/admin/coupons/{coupon_id}",
            "/admin/orders", "/admin/orders/{order_id}/status",
            "/admin/settings/shipping", "/admin/settings/{key}",
        ],
        "health": ["/health/check"],
    }
