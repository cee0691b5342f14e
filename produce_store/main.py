"""
Produce Store - Backend API
Storefront and admin backend for the farm produce store
"""
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from produce_store.api import (
    addresses, admin, analytics, banners, cart, categories, checkout,
    delivery, inventory, orders, preorders, products, site_settings, social_links,
    subscriptions
)
from produce_store.core.config import settings
from produce_store.core.database import get_db_connection_with_retry
from produce_store.core.logging_config import setup_logging
from produce_store.core.rate_limit import RateLimitMiddleware

setup_logging()

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

# Rate limiting sits inside CORS so 429 responses still carry CORS headers
app.add_middleware(RateLimitMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"https://.*\.vercel\.app",  # Preview and production deployments
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Include API routers
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(categories.router, prefix="/api/v1/categories", tags=["Categories"])
app.include_router(banners.router, prefix="/api/v1/banners", tags=["Banners"])
app.include_router(social_links.router, prefix="/api/v1/social-links", tags=["Social Links"])
app.include_router(cart.router, prefix="/api/v1/cart", tags=["Cart"])
app.include_router(delivery.router, prefix="/api/v1/delivery", tags=["Delivery"])
app.include_router(checkout.router, prefix="/api/v1/checkout", tags=["Checkout"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(preorders.router, prefix="/api/v1/pre-orders", tags=["Pre-orders"])
app.include_router(addresses.router, prefix="/api/v1/addresses", tags=["Addresses"])
app.include_router(site_settings.router, prefix="/api/v1/settings", tags=["Settings"])
app.include_router(subscriptions.router, prefix="/api/v1/subscriptions", tags=["Subscriptions"])
app.include_router(analytics.router, prefix="/api/v1/analytics", tags=["Analytics"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])
app.include_router(inventory.router, prefix="/api/v1/inventory", tags=["Inventory"])


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": settings.API_TITLE,
        "status": "online",
        "version": settings.API_VERSION,
        "description": settings.API_DESCRIPTION
    }


@app.get("/health")
async def health():
    """Liveness plus a database round-trip; integrations report whether their keys are set"""
    started = time.perf_counter()
    database = {"status": "connected", "latency_ms": None, "error": None}

    try:
        # One attempt only, health checks must answer quickly
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        try:
            cursor = conn.cursor()
            query_started = time.perf_counter()
            cursor.execute("SELECT 1")
            cursor.fetchone()
            database["latency_ms"] = round((time.perf_counter() - query_started) * 1000, 2)
        finally:
            conn.close()
    except Exception as e:
        database["status"] = "disconnected"
        database["error"] = str(e)

    return {
        "status": "healthy" if database["status"] == "connected" else "degraded",
        "service": "produce-store-api",
        "version": settings.API_VERSION,
        "database": database,
        "integrations": {
            "payments": bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET),
            "email": bool(settings.RESEND_API_KEY),
            "storage": bool(settings.SUPABASE_URL),
        },
        "total_latency_ms": round((time.perf_counter() - started) * 1000, 2)
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("produce_store.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.API_DEBUG)
