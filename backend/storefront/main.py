"""
Online Store - FastAPI Backend
REST API for the storefront: catalog, customers, orders, payments and shipping
"""
import time
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Load environment variables
load_dotenv()

from storefront.core.config import settings
from storefront.core.database import get_db_connection_with_retry
from storefront.core.errors import register_exception_handlers
from storefront.core.rate_limit import RateLimitMiddleware
from storefront.core.uploads import UPLOAD_URL_PREFIX, upload_dir
from storefront.api import (
    addresses,
    categories,
    coupons,
    customers,
    orders,
    payments,
    products,
    reviews,
    shipping,
    suppliers,
    users,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

# Rate limiting (global limit for /api/*)
app.add_middleware(RateLimitMiddleware)

# CORS - added last so it wraps every response, including 429s
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


register_exception_handlers(app)

# Routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
app.include_router(suppliers.router, prefix="/api/suppliers", tags=["Suppliers"])
app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
app.include_router(addresses.router, prefix="/api/addresses", tags=["Addresses"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(coupons.router, prefix="/api/coupons", tags=["Coupons"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(shipping.router, prefix="/api/shipping", tags=["Shipping"])

# VNPAY IPN URL registered with the merchant portal
app.add_api_route(
    "/vnpay-api/webhook/{gateway}",
    payments.payment_webhook,
    methods=["GET", "POST"],
    tags=["Payments"]
)

app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=str(upload_dir())), name="uploads")


@app.get("/")
async def root():
    return {
        "status": "online",
        "service": "online-store-api",
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    """
    Health check with a real database round trip

    Returns "degraded" instead of failing when the database is unreachable,
    so the process itself still reports as alive.
    """
    start_time = time.time()
    db_status = "disconnected"
    db_latency_ms = None
    db_error = None

    try:
        db_start = time.time()
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)
        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        db_error = str(e)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "online-store-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2)
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=not settings.is_production)
